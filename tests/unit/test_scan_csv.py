"""Unit tests for scan CSV parsing."""

from tikwifi.domain import mark_known, parse_scan_csv

CSV = (
    'AA:BB:CC:DD:EE:01,"Cafe, Main St",2412/20/gn,-71,,privacy\n'
    "\n"
    "AA:BB:CC:DD:EE:02,Library,5180/20-Ceee/ac,-48,,none\n"
    "AA:BB:CC:DD:EE:03,,2437/20/gn,-50\n"
    "broken,line\n"
    "AA:BB:CC:DD:EE:04,'Guest',auto,n/a\n"
)


def test_parse_fields_and_order():
    nets = parse_scan_csv(CSV)
    assert [n.ssid for n in nets] == ["Guest", "Library", "Cafe, Main St"]

    library = nets[1]
    assert library.mac == "AA:BB:CC:DD:EE:02"
    assert library.frequency == 5180
    assert library.signal == -48
    assert library.privacy is False

    cafe = nets[2]
    assert cafe.frequency == 2412
    assert cafe.privacy is True


def test_unparsable_values_become_zero():
    guest = next(n for n in parse_scan_csv(CSV) if n.ssid == "Guest")
    assert guest.frequency == 0
    assert guest.signal == 0


def test_empty_input():
    assert parse_scan_csv("") == []


def test_mark_known():
    nets = parse_scan_csv(CSV)
    marked = mark_known(nets, [{"ssid": "Library", "name": "client-Library"}])
    library = next(n for n in marked if n.ssid == "Library")
    assert library.known is True
    assert library.profile_name == "client-Library"
    assert not any(n.known for n in marked if n.ssid != "Library")
