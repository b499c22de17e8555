from .users import (  # noqa: F401
    create_user,
    get_user,
    get_user_by_id,
    search_users,
    list_users,
    update_user,
    delete_user,
    set_user_status,
    reset_all_statuses,
)
from .friendships import (  # noqa: F401
    SendOutcome,
    OUTCOME_MESSAGES,
    send_friend_request,
    accept_friend_request,
    reject_friend_request,
    cancel_friend_request,
    get_friend_request,
    list_pending_requests,
    list_friends,
    are_friends,
)
from .messages import send_message, list_conversation, list_inbox  # noqa: F401
