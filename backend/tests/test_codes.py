from roomrelay.services.rooms import ROOM_CODE_ALPHABET, generate_room_code, normalize_room_code


def test_alphabet_has_no_ambiguous_characters():
    assert len(ROOM_CODE_ALPHABET) == 32
    assert len(set(ROOM_CODE_ALPHABET)) == 32
    for ch in '0O1I':
        assert ch not in ROOM_CODE_ALPHABET


def test_generated_codes_use_alphabet():
    for _ in range(500):
        code = generate_room_code()
        assert len(code) == 6
        assert all(ch in ROOM_CODE_ALPHABET for ch in code)


def test_generate_respects_length():
    assert len(generate_room_code(4)) == 4


def test_normalize_trims_and_uppercases():
    assert normalize_room_code('  abcd23 ') == 'ABCD23'
    assert normalize_room_code('ABCD23') == 'ABCD23'


def test_normalize_rejects_non_strings():
    assert normalize_room_code(None) == ''
    assert normalize_room_code(123456) == ''
