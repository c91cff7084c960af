"""Unit tests for multipart request assembly."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from carmen_cloud.models import (
    AnprRequest,
    InputImage,
    TransportRequest,
    VehicleRequest,
    VehicleService,
)
from carmen_cloud.services.request_assembler import MultipartPayload, assemble, normalize_subpath
from carmen_cloud.tests.mock_utils import JPEG_BYTES


@pytest.fixture
def plate_image():
    return InputImage(source=JPEG_BYTES, mime_type="jpeg", name="plate.jpg")


class TestNormalizeSubpath:
    """Routing segment normalization."""

    @pytest.mark.parametrize("segment", [None, ""])
    def test_empty_segment_maps_to_no_subpath(self, segment):
        assert normalize_subpath(segment) == ""

    def test_leading_slash_kept(self):
        assert normalize_subpath("/eur/hun") == "/eur/hun"

    def test_slash_prefixed(self):
        assert normalize_subpath("us") == "/us"

    @given(st.text())
    def test_routing_rule_holds_for_any_segment(self, segment):
        result = normalize_subpath(segment)
        if not segment:
            assert result == ""
        elif segment.startswith("/"):
            assert result == segment
        else:
            assert result == "/" + segment


class TestAssembleVehicle:
    """Vehicle request assembly."""

    def test_plate_scenario(self, plate_image):
        request = VehicleRequest(services=[VehicleService.ANPR], image=plate_image, region="us")
        payload = assemble(request)

        assert payload.subpath == "/us"
        assert payload.names() == ["service", "image"]
        assert payload.fields("service") == [(None, "ANPR", None)]
        assert payload.fields("image") == [("plate.jpg", JPEG_BYTES, "image/jpeg")]

    def test_services_joined_in_request_order(self, plate_image):
        request = VehicleRequest(
            services=[VehicleService.MMR, VehicleService.ANPR, VehicleService.ADR],
            image=plate_image,
        )
        assert assemble(request).fields("service") == [(None, "MMR,ANPR,ADR", None)]

    def test_no_service_field_without_selectors(self, plate_image):
        payload = assemble(VehicleRequest(image=plate_image))
        assert "service" not in payload.names()

    def test_optional_fields_emitted_when_present(self, plate_image):
        request = VehicleRequest(
            services=["ANPR"],
            image=plate_image,
            location="HU",
            roi="0,0,100,0,100,100,0,100",
            maxreads=3,
        )
        payload = assemble(request)

        assert payload.names() == ["service", "image", "location", "roi", "maxreads"]
        assert payload.fields("location") == [(None, "HU", None)]
        assert payload.fields("roi") == [(None, "0,0,100,0,100,100,0,100", None)]
        assert payload.fields("maxreads") == [(None, "3", None)]

    def test_empty_optional_values_skipped(self):
        payload = assemble(VehicleRequest(location="", region=""))
        assert payload.parts == []
        assert payload.subpath == ""

    @given(st.lists(st.sampled_from(list(VehicleService)), min_size=1))
    def test_exactly_one_service_field(self, services):
        payload = assemble(VehicleRequest(services=services))
        assert payload.fields("service") == [
            (None, ",".join(service.value for service in services), None)
        ]


class TestAssembleOtherServices:
    """ANPR and transport request assembly."""

    def test_anpr_request(self, plate_image):
        request = AnprRequest(services=["ANPR"], image=plate_image, region="eur", maxreads=1)
        payload = assemble(request)

        assert payload.subpath == "/eur"
        assert payload.names() == ["service", "image", "maxreads"]

    def test_transport_request_sends_one_part_per_image(self):
        front = InputImage(source=b"front", mime_type="png", name="front.png")
        back = InputImage(source=b"back", mime_type="jpeg", name="back.jpg")
        payload = assemble(TransportRequest(images=[front, back], type="containercode"))

        assert payload.subpath == "/containercode"
        assert payload.fields("image") == [
            ("front.png", b"front", "image/png"),
            ("back.jpg", b"back", "image/jpeg"),
        ]
        assert "service" not in payload.names()


class TestMultipartPayload:
    """Payload helpers."""

    def test_add_field_and_file(self):
        payload = MultipartPayload()
        payload.add_field("location", "HU")
        payload.add_file("image", "a.jpg", b"x", "image/jpeg")
        assert payload.parts == [
            ("location", (None, "HU", None)),
            ("image", ("a.jpg", b"x", "image/jpeg")),
        ]
