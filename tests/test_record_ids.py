from __future__ import annotations

import pytest

from app.core.record_ids import ALPHABET, generate_record_id


def test_generate_record_id_uses_prefix_and_alphabet() -> None:
    record_id = generate_record_id("uch")

    prefix, body = record_id.split("_", maxsplit=1)
    assert prefix == "uch"
    assert len(body) == 20
    assert set(body) <= set(ALPHABET)


def test_generate_record_id_is_unique_enough() -> None:
    assert len({generate_record_id("gs", length=12) for _ in range(200)}) == 200


@pytest.mark.parametrize(("prefix", "length"), [("", 10), ("cus", 0)])
def test_generate_record_id_rejects_bad_arguments(prefix: str, length: int) -> None:
    with pytest.raises(ValueError):
        generate_record_id(prefix, length=length)
