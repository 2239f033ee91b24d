ORGANIZATION_NAME = "PLOGGING ETHIOPIA"
ORGANIZATION_TAGLINE = "Environmental Care + Community Wellness"
ORGANIZATION_MONOGRAM = "PE"

# Printed in the right-hand signature block
REPRESENTATIVE_NAME = "Plogging Ethiopia Team"
REPRESENTATIVE_TITLE = "Program Director"
ORGANIZER_TITLE = "Event Organizer"

POWERED_BY = "Powered by Pixel Addis Solutions PLC"
VERIFY_BASE_URL = "https://plogging-user-wyci.vercel.app"

CERTIFICATE_ID_PREFIX = "PE"

DEFAULT_ORGANIZER_NAME = "Plogging Ethiopia Team"
DEFAULT_LOCATION = "Addis Ababa, Ethiopia"
DEFAULT_EVENT_NAME = "Community Service"
DEFAULT_BADGE_TYPE = "Environmental Champion"

PRESENTED_TO_TEXT = "This certificate is proudly presented to"
RECOGNITION_TEXT = (
    "In recognition of your commitment to environmental stewardship "
    "and community wellness"
)
LEADERSHIP_TEXT = "for exceptional leadership in environmental conservation"

CERTIFICATE_TYPES = ("participation", "achievement", "leadership", "milestone")

# "event" is what the batch screen calls a participation certificate
CERTIFICATE_TYPE_ALIASES = {"event": "participation"}

BADGE_LEVELS = [
    (100, "Environmental Champion"),
    (50, "Green Warrior"),
    (25, "Eco Hero"),
    (0, "Community Helper"),
]

BADGE_TYPE_BY_CERTIFICATE = {
    "leadership": "Environmental Leader",
    "milestone": "Milestone Achiever",
    "participation": "Environmental Steward",
}

EXPORT_STAGGER_SECONDS = 0.1
