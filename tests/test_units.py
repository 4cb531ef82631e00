from services import units


def test_split_weight_glued_to_number():
    assert units.split_quantity("200g thịt ba chỉ") == ("200g", "thịt ba chỉ")


def test_split_vietnamese_count_word():
    assert units.split_quantity("2 củ hành") == ("2 củ", "hành")


def test_longest_unit_wins():
    assert units.split_quantity("1 muỗng canh nước mắm") == ("1 muỗng canh", "nước mắm")
    assert units.split_quantity("1.5kg xương heo") == ("1.5kg", "xương heo")


def test_unit_prefix_of_word_is_not_a_unit():
    # "lá" starts with "l" but is part of the name.
    assert units.split_quantity("3 lá chanh") == ("3", "lá chanh")


def test_no_leading_number():
    assert units.split_quantity("Hành lá") is None
    assert units.split_quantity("200g") is None
