from twinfind.core.models import VerificationMode

VERIFY_ALIASES = {
    "hash": VerificationMode.HASH,
    "bytes": VerificationMode.BYTES,
}

VERIFY_CHOICES = list(VERIFY_ALIASES.keys())

VERIFY_HELP_TEXT = (
    "Final verification of files whose partial hashes match:\n"
    "  hash   : compare BLAKE2b-256 digests of the full content (default)\n"
    "  bytes  : compare file contents byte for byte\n"
)

EPILOG_TEXT = """
Examples:
  Find duplicates in Downloads folder
  %(prog)s ~/Downloads

  One line per group, plus grand total
  %(prog)s -s -t ~/Downloads

  Only JPEG files between 500KB and 10MB, top-level directory only
  %(prog)s -S -f '*.jpg' -m 500KB -M 10MB ~/Pictures

  Include empty files and verify byte by byte
  %(prog)s -m 0 --verify bytes ~/projects

Exit status: 0 on completion, 1 if the scan cannot start, 130 when interrupted.
"""
