"""Default settings for readerly.

Every value here can be overridden per :class:`readerly.Parser` instance
(see :class:`readerly.items.ParserOptions`).
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Resource guard
# ---------------------------------------------------------------------------
# Maximum number of elements accepted before extraction aborts.  0 disables
# the check.
MAX_ELEMS_TO_PARSE = 0

# ---------------------------------------------------------------------------
# Candidate selection
# ---------------------------------------------------------------------------
# Number of top candidates tracked while picking the article container.
NB_TOP_CANDIDATES = 5

# Minimum extracted text length (characters) for an attempt to be accepted
# without relaxing any flag.
CHAR_THRESHOLD = 500

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
# Classes always kept on output nodes when class stripping runs.
CLASSES_TO_PRESERVE: tuple[str, ...] = ("page",)

KEEP_CLASSES = False

# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------
DISABLE_JSONLD = False
