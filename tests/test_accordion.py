import random

from frontend.accordion import AccordionController, AccordionMode

ITEMS = ["tone-style", "content", "structure", "skills"]


def test_initial_open_item():
    acc = AccordionController(initial_open="content")
    assert acc.open_items == {"content"}
    assert acc.is_open("content")
    assert not acc.is_open("skills")

    assert AccordionController().open_items == frozenset()


def test_single_mode_never_opens_two_items():
    rng = random.Random(7)
    acc = AccordionController(mode=AccordionMode.SINGLE)
    for _ in range(500):
        acc.toggle(rng.choice(ITEMS))
        assert len(acc.open_items) <= 1


def test_single_mode_opening_another_item_closes_the_previous_one():
    acc = AccordionController(initial_open="content")
    acc.toggle("skills")
    assert acc.open_items == {"skills"}
    assert not acc.is_open("content")


def test_single_mode_toggle_twice_closes():
    acc = AccordionController()
    acc.toggle("structure")
    acc.toggle("structure")
    assert acc.open_items == frozenset()


def test_multi_mode_toggle_is_its_own_inverse():
    rng = random.Random(11)
    acc = AccordionController(mode=AccordionMode.MULTI)
    for _ in range(200):
        acc.toggle(rng.choice(ITEMS))
        before = acc.open_items
        item = rng.choice(ITEMS)
        acc.toggle(item)
        acc.toggle(item)
        assert acc.open_items == before


def test_multi_mode_allows_every_item_open():
    acc = AccordionController(mode="multi")
    for item in ITEMS:
        acc.toggle(item)
    assert acc.open_items == set(ITEMS)


def test_is_open_reflects_latest_toggle_and_listeners_are_notified():
    acc = AccordionController()
    seen = []
    unsubscribe = acc.subscribe(lambda c: seen.append(c.is_open("content")))

    acc.toggle("content")
    assert acc.is_open("content")
    acc.toggle("content")
    assert not acc.is_open("content")
    assert seen == [True, False]

    unsubscribe()
    acc.toggle("content")
    assert seen == [True, False]
