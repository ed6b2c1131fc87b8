import random

# No O/0/I/1
ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'


def generate_room_code(length: int = 6) -> str:
    """Generate a short room code. Uniqueness is the caller's problem."""
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def normalize_room_code(raw) -> str:
    if not isinstance(raw, str):
        return ''
    return raw.strip().upper()
