"""
Failure reasons for rejected actions.
Every rejected action raises AdventureError with one reason from FAILURE_REASONS.
"""

WRONG_PHASE = "wrong_phase"
ALREADY_RESOLVED = "already_resolved"
NOT_YET_RESOLVED = "not_yet_resolved"
NOT_YET_ACCEPTED = "not_yet_accepted"
INVALID_CHOICE_INDEX = "invalid_choice_index"
NOT_YOUR_TURN = "not_your_turn"
INVALID_PLAYER = "invalid_player"
SLOT_TAKEN = "slot_taken"
LAST_GOBLIN = "last_goblin"
INVALID_ARGUMENT = "invalid_argument"
NOTHING_TO_OFFER = "nothing_to_offer"
LOOT_FULL = "loot_full"
UNKNOWN_ACTION = "unknown_action"

FAILURE_REASONS = (
    WRONG_PHASE,
    ALREADY_RESOLVED,
    NOT_YET_RESOLVED,
    NOT_YET_ACCEPTED,
    INVALID_CHOICE_INDEX,
    NOT_YOUR_TURN,
    INVALID_PLAYER,
    SLOT_TAKEN,
    LAST_GOBLIN,
    INVALID_ARGUMENT,
    NOTHING_TO_OFFER,
    LOOT_FULL,
    UNKNOWN_ACTION,
)


class AdventureError(ValueError):
    """An action violated a precondition of the current phase. State is left untouched."""

    def __init__(self, reason: str, message: str):
        if reason not in FAILURE_REASONS:
            raise ValueError(f"Unknown failure reason: {reason}")
        super().__init__(message)
        self.reason = reason
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"reason": self.reason, "message": self.message}
