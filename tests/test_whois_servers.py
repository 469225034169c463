import pytest

from nettracex.errors import NetTraceError
from nettracex.whois.servers import (
    IANA_WHOIS_SERVER,
    IP_WHOIS_SERVER,
    SUFFIX_WHOIS_SERVERS,
    TLD_WHOIS_SERVERS,
    get_whois_server,
    split_server,
)


def test_ip_literals_go_to_arin():
    assert get_whois_server("8.8.8.8") == IP_WHOIS_SERVER
    assert get_whois_server("2001:4860:4860::8888") == IP_WHOIS_SERVER


def test_tld_lookup_is_case_insensitive():
    assert get_whois_server("example.com") == "whois.verisign-grs.com:43"
    assert get_whois_server("WWW.Example.COM.") == "whois.verisign-grs.com:43"
    assert get_whois_server("example.de") == "whois.denic.de:43"


def test_multi_label_suffix_wins_over_tld():
    assert get_whois_server("example.co.uk") == "whois.nic.uk:43"
    assert get_whois_server("shop.example.co.in") == "whois.registry.in:43"


def test_unknown_tld_falls_back_to_iana():
    assert get_whois_server("example.unknowntld") == IANA_WHOIS_SERVER


@pytest.mark.parametrize("query", ["localhost", "", "."])
def test_single_label_queries_fail(query):
    with pytest.raises(NetTraceError) as info:
        get_whois_server(query)
    assert info.value.code == "WHOIS_SERVER_LOOKUP_FAILED"
    assert info.value.is_network


def test_empty_labels_still_map_by_tld():
    assert get_whois_server("example..com") == "whois.verisign-grs.com:43"
    assert get_whois_server(".com") == "whois.verisign-grs.com:43"


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        TLD_WHOIS_SERVERS["com"] = "evil:43"
    with pytest.raises(TypeError):
        SUFFIX_WHOIS_SERVERS["co.uk"] = "evil:43"


def test_split_server():
    assert split_server("whois.iana.org:43") == ("whois.iana.org", 43)
    assert split_server("127.0.0.1:4343") == ("127.0.0.1", 4343)
    assert split_server("whois.example") == ("whois.example", 43)
