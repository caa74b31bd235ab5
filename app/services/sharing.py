"""
Share links and embed code

Builds tracked quiz URLs (doctor + UTM parameters) and the iframe snippet
clinics paste into their own sites.
"""
from typing import Optional
from urllib.parse import urlencode

from app.models.schemas import RoutingContext, ShareLinks

SHARE_CAMPAIGN = "quiz_share"

# Source -> utm_medium
SOURCE_MEDIUMS = {
    "facebook": "facebook",
    "linkedin": "linkedin",
    "twitter": "twitter",
    "tiktok": "tiktok",
    "qr": "qr",
    "email": "email",
    "text": "sms",
    "website": "web",
}


def source_medium(source: str) -> str:
    return SOURCE_MEDIUMS.get(source, "referral")


def tracking_params(routing: RoutingContext, source: Optional[str] = None) -> dict:
    params = {}
    if routing.doctor_id:
        params["doctor"] = routing.doctor_id
    if routing.physician_id:
        params["physician"] = routing.physician_id
    source = source or routing.source or "website"
    params["source"] = source
    params["utm_source"] = source
    params["utm_medium"] = source_medium(source)
    params["utm_campaign"] = SHARE_CAMPAIGN
    return params


def share_url(base_url: str, quiz_type: str, routing: RoutingContext, source: Optional[str] = None) -> str:
    """Landing page URL for a quiz, with tracking parameters"""
    if routing.custom_quiz_id:
        path = f"/custom-quiz/{routing.custom_quiz_id}"
    else:
        path = f"/share/{quiz_type.lower()}"
    return f"{base_url}{path}?{urlencode(tracking_params(routing, source))}"


def embed_url(base_url: str, quiz_type: str, routing: RoutingContext, source: Optional[str] = None) -> str:
    """Chat-format quiz URL used inside the iframe"""
    if routing.custom_quiz_id:
        path = f"/embed/custom/{routing.custom_quiz_id}"
    else:
        path = f"/embed/{quiz_type.lower()}"
    return f"{base_url}{path}?{urlencode(tracking_params(routing, source))}"


def embed_code(url: str, width: str = "100%", height: str = "700px") -> str:
    return (
        f'<div id="quiz-embed-container" style="width: {width}; height: {height}; max-width: 100%;">\n'
        f'  <iframe src="{url}" width="100%" height="100%" style="border: none;" title="Quiz Embed"></iframe>\n'
        f'</div>'
    )


def build_share_links(base_url: str, quiz_type: str, routing: RoutingContext, source: Optional[str] = None) -> ShareLinks:
    frame_url = embed_url(base_url, quiz_type, routing, source)
    return ShareLinks(
        quiz_type=quiz_type.upper(),
        share_url=share_url(base_url, quiz_type, routing, source),
        embed_url=frame_url,
        embed_code=embed_code(frame_url.replace("&", "&amp;")),
    )
