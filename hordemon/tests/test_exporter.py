from hordemon.exporter import export_filename, to_csv, to_table
from hordemon.metrics import MetricsWindow

from .fakes import make_sample

# 2024-01-01T00:00:00Z
T0 = 1_704_067_200_000


def _window():
    window = MetricsWindow(limit=10)
    window.append(make_sample(T0, 100.0, image=["a"]))
    window.append(make_sample(T0 + 30_000, 130.5, image=["a", "b"], text=["t"]))
    return window


def test_table_rows():
    rows = to_table(_window().current())
    assert rows == [
        ["2024-01-01T00:00:00.000Z", 100, 0, 1, 0],
        ["2024-01-01T00:00:30.000Z", 130.5, 30.5, 2, 1],
    ]


def test_csv_layout():
    content = to_csv(_window().current())
    assert content.splitlines() == [
        "Timestamp,Kudos,Kudos Change,Image Requests,Text Requests",
        "2024-01-01T00:00:00.000Z,100,0,1,0",
        "2024-01-01T00:00:30.000Z,130.5,30.5,2,1",
    ]


def test_csv_is_byte_identical_on_repeat():
    window = _window()
    assert to_csv(window.current()).encode() == to_csv(window.current()).encode()


def test_empty_window_exports_header_only():
    assert to_csv([]) == "Timestamp,Kudos,Kudos Change,Image Requests,Text Requests\n"


def test_filename_carries_export_time():
    assert export_filename(T0 + 1) == "horde-monitor-data-2024-01-01T00:00:00.001Z.csv"
