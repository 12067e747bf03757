"""Application constants.

Vocabulary shared by the schemas, the services and the realtime layer.
"""

# Question votes
UPVOTE = "upvote"
DOWNVOTE = "downvote"
VOTE_TYPES = (UPVOTE, DOWNVOTE)

# Poll types
MULTIPLE_CHOICE = "multiple-choice"
OPEN_TEXT = "open-text"
WORD_CLOUD = "word-cloud"
RATING = "rating"
POLL_TYPES = (MULTIPLE_CHOICE, OPEN_TEXT, WORD_CLOUD, RATING)

# Multiple-choice polls need at least two distinct options
MIN_POLL_OPTIONS = 2
MAX_POLL_OPTIONS = 10

# Realtime message vocabulary (server -> client)
PARTICIPANT_JOINED = "participant_joined"
PARTICIPANT_LEFT = "participant_left"
NEW_QUESTION = "new_question"
QUESTION_UPDATED = "question_updated"
QUESTION_VOTE = "question_vote"
NEW_POLL = "new_poll"
POLL_UPDATED = "poll_updated"
POLL_RESPONSE = "poll_response"
EVENT_UPDATED = "event_updated"

# Realtime message vocabulary (client -> server)
JOIN_EVENT = "join_event"
PING = "ping"
PONG = "pong"

# Slugs: random suffix appended to generated slugs
SLUG_SUFFIX_LENGTH = 4

# Cache keys and TTL (seconds) for the active event listing
ACTIVE_EVENTS_CACHE_KEY = "active_events"
ACTIVE_EVENTS_CACHE_TTL = 3.0
