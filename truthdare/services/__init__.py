from .session import SessionContext, new_session, session_for_player
from .rooms import (
    generate_room_code,
    create_room,
    get_room,
    lookup_room_by_code,
    room_ready,
    set_room_status,
    delete_room,
)
from .players import (
    list_players,
    register_host,
    join_room,
    assign_turn_order,
    create_room_with_host,
    join_room_by_code,
)
from .prompts import seed_default_prompts, list_prompts, pick_prompt
from .responses import ResponseEntry, record_response, list_responses
from .engine import (
    get_game_state,
    visible_prompt,
    start_game,
    choose_type,
    submit_response,
    advance_turn,
    next_player_id,
)

__all__ = [
    "SessionContext",
    "new_session",
    "session_for_player",
    "generate_room_code",
    "create_room",
    "get_room",
    "lookup_room_by_code",
    "room_ready",
    "set_room_status",
    "delete_room",
    "list_players",
    "register_host",
    "join_room",
    "assign_turn_order",
    "create_room_with_host",
    "join_room_by_code",
    "seed_default_prompts",
    "list_prompts",
    "pick_prompt",
    "ResponseEntry",
    "record_response",
    "list_responses",
    "get_game_state",
    "visible_prompt",
    "start_game",
    "choose_type",
    "submit_response",
    "advance_turn",
    "next_player_id",
]
