import pytest
from unittest.mock import MagicMock, patch

from zeroconf import IPVersion, ServiceInfo, Zeroconf

from clustertopo.discovery.mdns.mdns_discoverer import MdnsDiscoverer

SERVICE_TYPE = "_testdb._tcp.local."


def _make_info(
    addresses: list[str], port: int | None, server: str | None = None
) -> MagicMock:
    info = MagicMock(spec=ServiceInfo)
    info.port = port
    info.server = server
    info.parsed_addresses.return_value = addresses
    return info


@pytest.fixture
def mock_zc() -> MagicMock:
    return MagicMock(spec=Zeroconf)


@pytest.fixture
def started_discoverer(mock_zc: MagicMock):
    with patch(
        "clustertopo.discovery.mdns.mdns_discoverer.ServiceBrowser"
    ) as mock_browser_cls:
        discoverer = MdnsDiscoverer(SERVICE_TYPE, zc_instance=mock_zc)
        discoverer.start()
        yield discoverer, mock_browser_cls


@pytest.mark.parametrize(
    "given, expected",
    [
        ("_testdb", "_testdb._tcp.local."),
        ("_testdb._udp", "_testdb._udp.local."),
        ("_testdb._tcp.local.", "_testdb._tcp.local."),
    ],
)
def test_service_type_normalization(
    mock_zc: MagicMock, given: str, expected: str
) -> None:
    assert MdnsDiscoverer(given, zc_instance=mock_zc).service_type == expected


def test_invalid_service_type(mock_zc: MagicMock) -> None:
    with pytest.raises(ValueError):
        MdnsDiscoverer("testdb", zc_instance=mock_zc)
    with pytest.raises(ValueError):
        MdnsDiscoverer(None, zc_instance=mock_zc)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        MdnsDiscoverer(42, zc_instance=mock_zc)  # type: ignore[arg-type]


def test_get_instances_before_start_raises(mock_zc: MagicMock) -> None:
    discoverer = MdnsDiscoverer(SERVICE_TYPE, zc_instance=mock_zc)
    with pytest.raises(RuntimeError):
        discoverer.get_instances()


def test_start_creates_browser(started_discoverer, mock_zc) -> None:
    discoverer, mock_browser_cls = started_discoverer
    mock_browser_cls.assert_called_once_with(
        mock_zc, SERVICE_TYPE, listener=discoverer
    )
    assert len(discoverer.get_instances()) == 0


def test_add_update_remove(started_discoverer, mock_zc) -> None:
    discoverer, _ = started_discoverer
    mock_zc.get_service_info.return_value = _make_info(["10.0.0.5"], 3301)

    discoverer.add_service(mock_zc, SERVICE_TYPE, "node1." + SERVICE_TYPE)
    assert discoverer.get_instances().to_strings() == ("10.0.0.5:3301",)
    mock_zc.get_service_info.assert_called_with(
        SERVICE_TYPE, "node1." + SERVICE_TYPE, 3000
    )
    mock_zc.get_service_info.return_value.parsed_addresses.assert_called_with(
        IPVersion.V4Only
    )

    mock_zc.get_service_info.return_value = _make_info(["10.0.0.6"], 3302)
    discoverer.update_service(mock_zc, SERVICE_TYPE, "node1." + SERVICE_TYPE)
    assert discoverer.get_instances().to_strings() == ("10.0.0.6:3302",)

    discoverer.remove_service(mock_zc, SERVICE_TYPE, "node1." + SERVICE_TYPE)
    assert len(discoverer.get_instances()) == 0


def test_falls_back_to_server_name(started_discoverer, mock_zc) -> None:
    discoverer, _ = started_discoverer
    mock_zc.get_service_info.return_value = _make_info(
        [], 3301, server="node2.local."
    )

    discoverer.add_service(mock_zc, SERVICE_TYPE, "node2." + SERVICE_TYPE)

    assert discoverer.get_instances().to_strings() == ("node2.local:3301",)


@pytest.mark.parametrize(
    "info",
    [
        None,
        _make_info(["10.0.0.5"], None),
        _make_info([], 3301, server=None),
    ],
)
def test_unusable_records_are_ignored(
    started_discoverer, mock_zc, info
) -> None:
    discoverer, _ = started_discoverer
    mock_zc.get_service_info.return_value = info

    discoverer.add_service(mock_zc, SERVICE_TYPE, "bad." + SERVICE_TYPE)

    assert len(discoverer.get_instances()) == 0


def test_other_service_types_are_ignored(started_discoverer, mock_zc) -> None:
    discoverer, _ = started_discoverer

    discoverer.add_service(mock_zc, "_other._tcp.local.", "x._other._tcp.local.")

    mock_zc.get_service_info.assert_not_called()
    assert len(discoverer.get_instances()) == 0


def test_close_with_shared_zc_does_not_close_it(
    started_discoverer, mock_zc
) -> None:
    discoverer, mock_browser_cls = started_discoverer
    discoverer.close()
    mock_browser_cls.return_value.cancel.assert_called_once()
    mock_zc.close.assert_not_called()


def test_close_with_owned_zc_closes_it() -> None:
    owned_zc = MagicMock(spec=Zeroconf)
    with patch(
        "clustertopo.discovery.mdns.mdns_discoverer.Zeroconf",
        return_value=owned_zc,
    ) as mock_zc_cls, patch(
        "clustertopo.discovery.mdns.mdns_discoverer.ServiceBrowser"
    ):
        discoverer = MdnsDiscoverer(SERVICE_TYPE)
        mock_zc_cls.assert_called_once()
        discoverer.start()
        discoverer.close()

    owned_zc.close.assert_called_once()
