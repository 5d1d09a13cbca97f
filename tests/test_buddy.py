import random

import pytest

from picokern.buddy import MAX_ORDER, PAGE_SIZE, BuddyAllocator, format_size

BASE = 0x10000000
SIZE = 16 * 1024 * 1024


def snapshot(buddy):
    return [buddy.free_blocks(order) for order in range(MAX_ORDER)]


@pytest.fixture
def buddy():
    return BuddyAllocator(BASE, SIZE)


def test_format_size_units():
    assert format_size(512) == "512B"
    assert format_size(PAGE_SIZE) == "4KB"
    assert format_size(SIZE) == "16MB"


def test_initial_layout_uses_largest_blocks(buddy):
    assert buddy.total_pages == SIZE // PAGE_SIZE
    assert buddy.free_blocks(MAX_ORDER - 1) == [0, 1024, 2048, 3072]
    assert all(buddy.free_blocks(order) == [] for order in range(MAX_ORDER - 1))
    assert buddy.free_page_count == buddy.total_pages


def test_odd_page_count_uses_smaller_blocks():
    small = BuddyAllocator(BASE, 3 * PAGE_SIZE)
    assert small.free_blocks(1) == [0]
    assert small.free_blocks(0) == [2]
    assert small.free_page_count == 3


def test_alloc_order_zero_splits_first_block(buddy):
    address = buddy.alloc_pages(0)
    assert address == BASE
    assert buddy.free_blocks(MAX_ORDER - 1) == [1024, 2048, 3072]
    for order in range(MAX_ORDER - 1):
        assert buddy.free_blocks(order) == [1 << order]
    assert buddy.free_page_count == buddy.total_pages - 1


def test_free_coalesces_back_to_initial(buddy):
    before = snapshot(buddy)
    address = buddy.alloc_pages(0)
    buddy.free_pages(address)
    assert snapshot(buddy) == before


def test_consecutive_allocations_are_adjacent(buddy):
    first = buddy.alloc_pages(0)
    second = buddy.alloc_pages(0)
    assert second - first == PAGE_SIZE
    buddy.free_pages(first)
    assert buddy.free_blocks(0) == [0]
    buddy.free_pages(second)
    assert buddy.free_blocks(0) == []
    assert buddy.free_page_count == buddy.total_pages


def test_order_too_large_rejected(buddy):
    with pytest.raises(ValueError):
        buddy.alloc_pages(MAX_ORDER)


def test_exhaustion_raises_memory_error(buddy):
    addresses = [buddy.alloc_pages(MAX_ORDER - 1) for _ in range(4)]
    assert len(set(addresses)) == 4
    with pytest.raises(MemoryError):
        buddy.alloc_pages(0)
    assert buddy.free_page_count == 0


def test_free_invalid_address_raises(buddy):
    with pytest.raises(ValueError):
        buddy.free_pages(BASE + SIZE)
    with pytest.raises(ValueError):
        buddy.free_pages(BASE - PAGE_SIZE)


def test_double_free_is_ignored(buddy):
    address = buddy.alloc_pages(2)
    buddy.free_pages(address)
    before = snapshot(buddy)
    buddy.free_pages(address)
    buddy.free_pages(None)
    assert snapshot(buddy) == before


def test_random_alloc_free_restores_state(buddy):
    before = snapshot(buddy)
    rng = random.Random(7)
    live = []
    for _ in range(200):
        if live and rng.random() < 0.4:
            buddy.free_pages(live.pop(rng.randrange(len(live))))
        else:
            order = rng.randrange(0, 5)
            live.append((buddy.alloc_pages(order), order))
            live[-1] = live[-1][0]
        assert buddy.free_page_count <= buddy.total_pages
    assert len(set(live)) == len(live)
    for address in live:
        buddy.free_pages(address)
    assert snapshot(buddy) == before


def test_stats_report(buddy):
    buddy.alloc_pages(1)
    report = buddy.stats()
    assert "Total pages: 4096 (16MB)" in report
    assert "Base address: 0x10000000" in report
    assert f"Total free: {buddy.total_pages - 2} pages" in report
    assert "Used: 2 pages (8KB)" in report


def test_log_receives_messages():
    lines = []
    buddy = BuddyAllocator(BASE, SIZE, log=lines.append)
    address = buddy.alloc_pages(0)
    assert "[Page] Allocate 4KB at order 0" in lines
    buddy.free_pages(address)
    assert any(line.startswith("[*] Coalesce page 0 and page 1") for line in lines)
    assert lines[-1].startswith("=== Buddy System Statistics ===")