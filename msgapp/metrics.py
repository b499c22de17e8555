from prometheus_client import Counter

FRIEND_REQUESTS = Counter(
    'msgapp_friend_requests_total',
    'Friend request sends by outcome',
    ['outcome'],
)
FRIEND_REQUEST_TRANSITIONS = Counter(
    'msgapp_friend_request_transitions_total',
    'Friend request status transitions',
    ['status'],
)
MESSAGES_SENT = Counter('msgapp_messages_sent_total', 'Direct messages sent')
LOGINS = Counter('msgapp_logins_total', 'Login attempts by result', ['result'])
