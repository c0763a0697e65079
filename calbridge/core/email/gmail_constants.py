"""
Gmail Constants - Labels and query fragments used by the transport
"""
from ...utils.config import ConfigDefaults

# Gmail system labels
GMAIL_LABELS = {
    "inbox": "INBOX",
    "unread": "UNREAD",
    "trash": "TRASH",
    "sent": "SENT",
}

# Gmail search query fragments
GMAIL_SEARCH_PATTERNS = {
    "unread": "is:unread",
    "from": "from:{address}",
    "after": "after:{epoch}",
}

# The authenticated user
GMAIL_USER_ID = "me"

# Default OAuth scopes; a transport needs every one of them
GMAIL_SCOPES = ConfigDefaults.SCOPES

# batchModify accepts at most this many ids per request
GMAIL_BATCH_MODIFY_LIMIT = 1000
