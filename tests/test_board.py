from feedlink.board import board_id, board_type


def test_board_type_is_unknown_on_generic_host():
    assert board_type() == "unknown"


def test_board_id_is_unknown_on_generic_host():
    assert board_id() == "unknown"


def test_board_values_are_stable_across_calls():
    ids = [board_id() for _ in range(3)]
    types = [board_type() for _ in range(3)]
    assert ids == ["unknown", "unknown", "unknown"]
    assert types == ["unknown", "unknown", "unknown"]


def test_board_id_fits_identifier_buffer():
    assert 0 < len(board_id()) < 64