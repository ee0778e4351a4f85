import io

import numpy as np

from Exp_Curves.developer import (
    clear_log,
    enable_category,
    export_log,
    get_buffer_size,
    get_entries,
    get_stats,
    increment_channel,
    is_category_enabled,
    log_event,
    log_worker_messages,
    set_master_hz,
    should_print_debug,
)
from Exp_Curves.encoding import ChannelEncoder


def test_disabled_categories_are_dropped():
    log_event("ENCODER", "WINDOW axis=0")
    assert get_buffer_size() == 0


def test_enabled_category_is_buffered():
    enable_category("encoder")
    assert is_category_enabled("encoder")
    increment_channel()
    log_event("ENCODER", "WINDOW axis=0")

    entries = get_entries("ENCODER")
    assert len(entries) == 1
    assert entries[0]["message"] == "WINDOW axis=0"
    assert entries[0]["channel"] == 1


def test_frequency_gate_is_per_message_key():
    enable_category("encoder")
    set_master_hz(1)

    log_event("ENCODER", "WINDOW a")
    log_event("ENCODER", "WINDOW b")
    log_event("ENCODER", "CHANNEL c")

    assert [e["message"] for e in get_entries()] == ["WINDOW a", "CHANNEL c"]


def test_gate_without_category():
    assert should_print_debug("cubic") is False
    enable_category("cubic")
    assert should_print_debug("cubic") is True
    enable_category("cubic", False)
    assert should_print_debug("cubic") is False


def test_worker_messages():
    enable_category("search")
    log_worker_messages([("SEARCH", "TRIAL max_degree=4"), ("CUBIC", "COMMIT start=0")])
    assert [e["category"] for e in get_entries()] == ["SEARCH"]


def test_export_and_stats(tmp_path):
    path = tmp_path / "log.txt"
    assert export_log(str(path)) is False

    enable_category("session")
    log_event("SESSION", "EXPORT out/")
    assert export_log(str(path)) is True
    assert "EXPORT out/" in path.read_text(encoding="utf-8")

    stats = get_stats()
    assert stats["total_logs"] == 1
    assert stats["categories"] == {"SESSION": 1}

    clear_log()
    assert get_buffer_size() == 0


def test_encoder_logs_windows_and_trials(small_config):
    enable_category("encoder")
    enable_category("search")
    times = np.arange(20) / 30.0

    ChannelEncoder(io.BytesIO(), io.BytesIO(), config=small_config).process(times, np.sin(times), 1, "scale")

    messages = [e["message"] for e in get_entries()]
    assert sum(m.startswith("TRIAL") for m in messages) == len(small_config.degree_candidates)
    assert any(m.startswith("WINDOW") for m in messages)
    assert any(m.startswith("CHANNEL") for m in messages)
