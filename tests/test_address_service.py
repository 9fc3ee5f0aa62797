import httpx
import pytest

from valtrack.services.address_service import TIMEOUT_MESSAGE, AddressService
from valtrack.utils.exceptions import ExternalServiceError

REGIONS = [
    {"code": "130000000", "name": "National Capital Region"},
    {"code": "010000000", "name": "Ilocos Region"},
]


def make_service(handler):
    return AddressService(
        base_url="https://psgc.test/api",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_regions_are_mapped_and_sorted():
    def handler(request):
        assert request.url.path == "/api/regions/"
        return httpx.Response(200, json=REGIONS)

    assert make_service(handler).get_regions() == [
        {"label": "Ilocos Region", "value": "010000000"},
        {"label": "National Capital Region", "value": "130000000"},
    ]


def test_lookup_paths():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json=[])

    service = make_service(handler)
    service.get_provinces_by_region("01")
    service.get_cities_by_region("13")
    service.get_cities_by_province("0128")
    service.get_barangays_by_city("137404")

    assert paths == [
        "/api/regions/01/provinces/",
        "/api/regions/13/cities-municipalities/",
        "/api/provinces/0128/cities-municipalities/",
        "/api/cities-municipalities/137404/barangays/",
    ]


def test_non_ok_response():
    service = make_service(lambda request: httpx.Response(404))
    with pytest.raises(ExternalServiceError) as exc:
        service.get_provinces_by_region("99")
    assert exc.value.message == "Failed to fetch provinces"


def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ExternalServiceError) as exc:
        make_service(handler).get_barangays_by_city("137404")
    assert exc.value.message == TIMEOUT_MESSAGE
