from battle.services.games import CODE_ALPHABET, generate_game_code


def test_alphabet_has_no_ambiguous_glyphs():
    assert len(set(CODE_ALPHABET)) == len(CODE_ALPHABET) == 32
    for glyph in '0O1I':
        assert glyph not in CODE_ALPHABET
    assert CODE_ALPHABET == CODE_ALPHABET.upper()


def test_codes_have_fixed_length_and_alphabet():
    for _ in range(500):
        code = generate_game_code()
        assert len(code) == 6
        assert set(code) <= set(CODE_ALPHABET)


def test_custom_length():
    assert len(generate_game_code(8)) == 8


def test_created_games_get_distinct_codes(coordinator):
    codes = [coordinator.create_game({'teamCount': 1})['code'] for _ in range(60)]
    assert len(set(codes)) == len(codes)
    assert all(len(c) == 6 and set(c) <= set(CODE_ALPHABET) for c in codes)
