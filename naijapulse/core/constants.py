"""Application constants.

Fixed vocabularies shared by validation, services and the realtime core.
"""

# Poll categories offered by the create-poll form
POLL_CATEGORIES = (
    "Politics",
    "Entertainment",
    "Economy",
    "Lifestyle",
    "Sports",
    "Technology",
)

# Option bounds for a single poll
MIN_POLL_OPTIONS = 2
MAX_POLL_OPTIONS = 6
YES_NO_OPTIONS = ("Yes", "No")
POLL_TYPES = ("multiple", "yes_no")

# Allowed poll durations in days (0 = no end date)
POLL_DURATION_DAYS = (1, 3, 7, 0)
DEFAULT_POLL_DURATION_DAYS = 3

# Listing
MAX_POLL_PAGE_SIZE = 50

# Moderation
REPORT_REASONS = (
    "Spam",
    "Hate speech",
    "Misinformation",
    "Inappropriate",
    "Other",
)
REPORT_TARGET_TYPES = ("poll", "comment")

# Sponsored polls are valued at a flat rate on the admin dashboard
SPONSORED_POLL_VALUE = 1000

# Localisation
LANGUAGES = ("en", "pidgin")
DEFAULT_LANGUAGE = "en"

# Locally persisted client state (cookie names)
GUEST_ID_COOKIE = "guestId"
GUEST_ID_HEADER = "X-Guest-Id"
LANGUAGE_COOKIE = "naijapulse-language"
ACCESS_TOKEN_COOKIE = "access_token"

# Display name fallbacks
GUEST_DISPLAY_NAME = "Guest"
DEFAULT_DISPLAY_NAME = "Naija User"
