import secrets

# Uppercase letters and digits without the look-alikes 0/O and 1/I
CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
CODE_LENGTH = 6


def generate_game_code(length=CODE_LENGTH):
    """Generate a short, shareable game code.

    Uniqueness is not checked here; the coordinator retries when the
    database rejects a duplicate.
    """
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))
