"""
Tests for CLI argument parsing and validation.
"""
import os
import sys
from unittest import mock
import pytest
from twinfind.cli import CLIApplication
from twinfind.core.models import VerificationMode


class TestArgumentParsing:
    """Test CLI argument parsing with argparse."""

    def test_defaults(self):
        app = CLIApplication()
        with mock.patch.object(sys, 'argv', ['twinfind', '/tmp/test']):
            args = app.parse_args()

        assert args.roots == ["/tmp/test"]
        assert args.single_line is False
        assert args.total is False
        assert args.recursive is True
        assert args.pattern is None
        assert args.regex is None
        assert args.min_size == "1"
        assert args.max_size is None
        assert args.jobs is None
        assert args.verify == "hash"
        assert args.verbose is False

    def test_short_flags(self):
        app = CLIApplication()
        with mock.patch.object(sys, 'argv', [
            'twinfind', '-s', '-t', '-S', '-f', '*.jpg', '-F', r'\d+', '-m', '1KB', '-M', '1GB', '-v', '/a', '/b'
        ]):
            args = app.parse_args()

        assert args.roots == ["/a", "/b"]
        assert args.single_line is True
        assert args.total is True
        assert args.recursive is False
        assert args.pattern == "*.jpg"
        assert args.regex == r"\d+"
        assert args.min_size == "1KB"
        assert args.max_size == "1GB"
        assert args.verbose is True

    def test_long_flags(self):
        args = CLIApplication.parse_args([
            '--single-line', '--total', '--no-recurse', '--pattern', '*.txt', '--regex', 'x',
            '--min-size', '0', '--max-size', '10', '--jobs', '3', '--verify', 'bytes', '--verbose', '/a'
        ])
        assert args.single_line and args.total and args.verbose
        assert args.recursive is False
        assert args.jobs == 3
        assert args.verify == "bytes"

    def test_root_is_required(self):
        with pytest.raises(SystemExit) as exc_info:
            CLIApplication.parse_args([])
        assert exc_info.value.code == 2

    def test_unknown_verification_rejected(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(['--verify', 'md5', '/a'])


class TestArgumentValidation:
    """validate_args / create_params turn bad input into exit code 1."""

    @pytest.mark.parametrize("argv", [
        ['-m', 'huge', '/a'],
        ['-M', '10XB', '/a'],
        ['-F', '[unclosed', '/a'],
        ['-j', '0', '/a'],
    ])
    def test_invalid_arguments_exit_with_error(self, argv, capsys):
        app = CLIApplication()
        args = app.parse_args(argv)
        with pytest.raises(SystemExit) as exc_info:
            app.validate_args(args)
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_create_params_converts_sizes_and_mode(self):
        app = CLIApplication()
        args = app.parse_args(['-m', '0', '-M', '2KB', '-j', '4', '--verify', 'bytes', '-S', 'rel/dir'])
        params = app.create_params(args)

        assert params.roots == (os.path.abspath('rel/dir'),)
        assert params.min_size == 0
        assert params.include_empty is True
        assert params.max_size == 2048
        assert params.workers == 4
        assert params.recursive is False
        assert params.verification is VerificationMode.BYTES

    def test_create_params_rejects_inverted_range(self):
        app = CLIApplication()
        args = app.parse_args(['-m', '10', '-M', '5', '/a'])
        with pytest.raises(SystemExit) as exc_info:
            app.create_params(args)
        assert exc_info.value.code == 1
