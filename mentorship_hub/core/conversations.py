from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from ..schemas import Conversation, MessageRecord

def message_order_key(message: MessageRecord) -> Tuple:
    # ids grow with insertion, so they break created_at ties
    return (message.created_at, message.id)

def build_conversations(viewer_id: int, messages: Iterable[MessageRecord]) -> List[Conversation]:
    """
    Groups the viewer's messages by counterparty.

    Depends only on the set of messages passed in, never on the order they
    arrive in, so a view rebuilt from a fresh query and one fed by live events
    agree whenever they hold the same messages. Messages not involving
    ``viewer_id`` are ignored. A self-addressed message forms its own
    conversation but never counts as unread.
    """
    latest: Dict[int, MessageRecord] = {}
    unread: Dict[int, int] = defaultdict(int)
    seen = set()

    for message in messages:
        if message.id in seen:
            continue
        seen.add(message.id)

        if message.sender_id == viewer_id:
            counterparty_id = message.recipient_id
        elif message.recipient_id == viewer_id:
            counterparty_id = message.sender_id
        else:
            continue

        current = latest.get(counterparty_id)
        if current is None or message_order_key(message) > message_order_key(current):
            latest[counterparty_id] = message

        # Notes to oneself are never unread
        if counterparty_id != viewer_id and message.sender_id == counterparty_id and not message.read:
            unread[counterparty_id] += 1

    conversations = [
        Conversation(
            viewer_id=viewer_id,
            counterparty_id=counterparty_id,
            latest_message=message,
            unread_count=unread[counterparty_id],
        )
        for counterparty_id, message in latest.items()
    ]
    conversations.sort(key=lambda c: message_order_key(c.latest_message), reverse=True)
    return conversations
