"""
Routing context, doctor resolution and share link tests
"""
import asyncio
from urllib.parse import parse_qs, urlparse

from app.database.backend import BackendError
from app.models.schemas import RoutingContext
from app.services.routing import resolve_session_doctor, routing_from_params
from app.services.sharing import build_share_links, source_medium, tracking_params


def test_routing_defaults():
    routing = routing_from_params({})
    assert routing.doctor_id is None
    assert routing.source == "website"
    assert routing.campaign == "default"
    assert routing.medium == "web"


def test_routing_aliases():
    routing = routing_from_params({
        "doctor": "doc-1",
        "physician_id": "phys-2",
        "utm_source": "facebook",
        "utm_campaign": "spring",
        "utm_medium": "social",
        "shareKey": "abc",
        "customQuizId": "cq1",
    })
    assert routing.doctor_id == "doc-1"
    assert routing.physician_id == "phys-2"
    assert routing.source == "facebook"
    assert routing.campaign == "spring"
    assert routing.medium == "social"
    assert routing.share_key == "abc"
    assert routing.custom_quiz_id == "cq1"


def test_short_names_win_over_utm():
    routing = routing_from_params({"source": "qr", "utm_source": "facebook"})
    assert routing.source == "qr"


def test_explicit_doctor_kept(fake_backend):
    routing = RoutingContext(doctor_id="doc-1", share_key="abc")
    resolved = asyncio.run(resolve_session_doctor(routing, fake_backend, custom_quiz_owner="doc-9"))
    assert resolved.doctor_id == "doc-1"
    assert fake_backend.selects == []


def test_custom_quiz_owner_before_share_key(fake_backend):
    routing = RoutingContext(share_key="abc")
    resolved = asyncio.run(resolve_session_doctor(routing, fake_backend, custom_quiz_owner="doc-9"))
    assert resolved.doctor_id == "doc-9"
    assert fake_backend.selects == []


def test_share_key_lookup(fake_backend):
    fake_backend.tables["quiz_shares"] = [{"share_key": "abc", "doctor_id": "doc-3"}]
    resolved = asyncio.run(resolve_session_doctor(RoutingContext(share_key="abc"), fake_backend))
    assert resolved.doctor_id == "doc-3"


def test_share_key_lookup_failure_leaves_doctor_unset(fake_backend):
    fake_backend.select_failures = [BackendError("boom")]
    resolved = asyncio.run(resolve_session_doctor(RoutingContext(share_key="abc"), fake_backend))
    assert resolved.doctor_id is None


def test_source_medium():
    assert source_medium("text") == "sms"
    assert source_medium("website") == "web"
    assert source_medium("newsletter") == "referral"


def test_tracking_params():
    params = tracking_params(RoutingContext(doctor_id="doc-1"), source="linkedin")
    assert params == {
        "doctor": "doc-1",
        "source": "linkedin",
        "utm_source": "linkedin",
        "utm_medium": "linkedin",
        "utm_campaign": "quiz_share",
    }


def test_share_links_for_standard_quiz():
    links = build_share_links("https://quiz.example.com", "NOSE", RoutingContext(doctor_id="doc-1"), source="qr")

    assert links.quiz_type == "NOSE"
    share = urlparse(links.share_url)
    assert share.path == "/share/nose"
    assert parse_qs(share.query)["utm_medium"] == ["qr"]
    assert urlparse(links.embed_url).path == "/embed/nose"
    assert 'src="https://quiz.example.com/embed/nose?doctor=doc-1&amp;source=qr' in links.embed_code


def test_share_links_for_custom_quiz():
    routing = RoutingContext(doctor_id="doc-1", custom_quiz_id="cq1")
    links = build_share_links("https://quiz.example.com", "custom", routing)

    assert urlparse(links.share_url).path == "/custom-quiz/cq1"
    assert urlparse(links.embed_url).path == "/embed/custom/cq1"
    assert parse_qs(urlparse(links.share_url).query)["source"] == ["website"]
