"""Moonsight: Streamlit page answering "can you see the moon right now?"."""

import asyncio
import html
import logging
from datetime import datetime
from functools import partial

import streamlit as st
from dotenv import load_dotenv
from pytz import utc
from streamlit_js_eval import get_geolocation, streamlit_js_eval

load_dotenv()

from moonsight.compute import compute_observation  # noqa: E402
from moonsight.config import load_settings  # noqa: E402
from moonsight.derive import (  # noqa: E402
    compass_label,
    illumination_percent,
    moon_age_days,
    next_major_phase,
    phase_label,
    pointer_rotation,
    time_remaining,
)
from moonsight.ephemeris import SkyfieldEphemeris, local_timezone  # noqa: E402
from moonsight.errors import InvalidCoordinate, LocationUnavailable  # noqa: E402
from moonsight.i18n import t  # noqa: E402
from moonsight.locations import (  # noqa: E402
    PRESET_CITIES,
    geolocation_key,
    payload_locator,
    place_name_for,
)
from moonsight.models import (  # noqa: E402
    DeviceSelection,
    Failed,
    LocationSelection,
    MoonObservation,
    PresetSelection,
    Ready,
    ResolvedLocation,
)
from moonsight.scheduler import RefreshScheduler  # noqa: E402

_settings = load_settings()

logging.basicConfig(
    level=_settings.log_level,
    format="%(asctime)s: %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

# --- Language detection (browser-first via streamlit-js-eval) ---
# On the first run the JS call returns None; the rerun it triggers fills it in.
if "lang" not in st.session_state:
    _browser_lang: str | None = streamlit_js_eval(
        js_expressions="navigator.language", key="_lang_detect", height=0
    )
    if _browser_lang is not None:
        st.session_state.lang = "ko" if _browser_lang.lower().startswith("ko") else "en"

_lang: str = st.session_state.get("lang", "en")

st.set_page_config(
    page_title=t("page_title", _lang),
    page_icon="🌙",
    layout="centered",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
    <style>
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #0d1b35 !important;
        color: #e8e8e8;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] {
        display: none !important;
    }
    .moon-title {
        text-align: center;
        color: #aaaaaa;
        font-size: 1.5rem;
        font-weight: 300;
    }
    .moon-answer {
        text-align: center;
        font-size: 4.5rem;
        font-weight: 700;
        line-height: 1.1;
    }
    .moon-answer.visible { color: #e8d5a3; }
    .moon-answer.hidden  { color: #556688; }
    .moon-sub {
        text-align: center;
        color: #aaaaaa;
        font-size: 1.1rem;
        margin-bottom: 1.2rem;
    }
    .moon-card {
        background: rgba(255, 255, 255, 0.04);
        border: 1px solid rgba(201, 169, 110, 0.18);
        border-radius: 12px;
        padding: 1rem;
        text-align: center;
        min-height: 9rem;
    }
    .moon-card .label { color: #999999; font-size: 0.85rem; }
    .moon-card .value { color: #e8e8e8; font-weight: 600; margin: 0.3rem 0; }
    .moon-card .extra { color: #999999; font-size: 0.85rem; }
    .moon-error {
        border: 1px solid #ff6b6b;
        color: #ff9999;
        border-radius: 12px;
        padding: 1.2rem 1.6rem;
        text-align: center;
    }
    .moon-footer {
        text-align: center;
        color: #777777;
        font-size: 0.85rem;
        margin-top: 1rem;
    }
    </style>
    """,
    unsafe_allow_html=True,
)


@st.cache_resource
def _ephemeris() -> SkyfieldEphemeris:
    return SkyfieldEphemeris(_settings.ephemeris_dir, _settings.ephemeris_file)


def _new_scheduler() -> RefreshScheduler:
    return RefreshScheduler(
        calculate=partial(
            compute_observation,
            provider=_ephemeris(),
            horizon_days=_settings.search_days,
        ),
        geocoder=partial(
            place_name_for,
            url=_settings.geocoder_url,
            user_agent=_settings.user_agent,
            timeout=_settings.http_timeout,
        ),
        interval_seconds=_settings.refresh_seconds,
        location_timeout=_settings.location_timeout,
    )


if "scheduler" not in st.session_state:
    st.session_state.scheduler = _new_scheduler()

scheduler: RefreshScheduler = st.session_state.scheduler


def _format_time(moment: datetime | None, location: ResolvedLocation) -> str:
    if moment is None:
        return t("not_available", _lang)
    coordinate = location.coordinate
    tz = local_timezone(coordinate.latitude, coordinate.longitude)
    return moment.astimezone(tz).strftime("%H:%M")


def _format_degrees(degrees: float) -> str:
    return f"{round(degrees)}°"


def _place_label(location: ResolvedLocation) -> str:
    if location.place_name:
        return location.place_name
    c = location.coordinate
    return f"{c.latitude:.4f}, {c.longitude:.4f}"


def _error_message(error: Exception) -> str:
    detail = html.escape(str(error))
    if isinstance(error, LocationUnavailable):
        return t("error_location", _lang).format(error=detail)
    if isinstance(error, InvalidCoordinate):
        return t("error_coordinate", _lang).format(error=detail)
    return t("error_ephemeris", _lang).format(error=detail)


def _card(icon: str, label: str, value: str, extra: str = "") -> str:
    return (
        f"<div class='moon-card'><div style='font-size:1.6rem'>{icon}</div>"
        f"<div class='label'>{label}</div>"
        f"<div class='value'>{value}</div>"
        f"<div class='extra'>{extra}</div></div>"
    )


def _event_extra(moment: datetime | None, now: datetime) -> str:
    remaining = time_remaining(moment, now)
    if remaining is None:
        return ""
    return t("in_time", _lang).format(hours=remaining.hours, minutes=remaining.minutes)


def _render_observation(observation: MoonObservation, location: ResolvedLocation, updated_at: datetime) -> None:
    visible = observation.is_visible
    answer_class = "visible" if visible else "hidden"
    st.markdown(
        f"<div class='moon-answer {answer_class}'>"
        f"{t('answer_yes' if visible else 'answer_no', _lang)}</div>"
        f"<div class='moon-sub'>{t('above_horizon' if visible else 'below_horizon', _lang)}</div>",
        unsafe_allow_html=True,
    )

    now = observation.observed_at
    label = phase_label(observation.phase)
    major = next_major_phase(observation.phase, now)
    rotation = pointer_rotation(observation.azimuth_degrees, None)
    arrow = (
        f"<span style='display:inline-block; transform:rotate({rotation:.0f}deg)'>↑</span>"
    )

    cards = [
        _card(
            "🌙",
            t("card_phase", _lang),
            t(label.value, _lang),
            t("illuminated", _lang).format(percent=illumination_percent(observation.illuminated_fraction))
            + "<br>"
            + t("moon_age", _lang).format(days=moon_age_days(observation.phase)),
        ),
        _card(
            "📍",
            t("card_position", _lang),
            t("altitude", _lang).format(degrees=_format_degrees(observation.altitude_degrees)),
            f"{arrow} {_format_degrees(observation.azimuth_degrees)} "
            f"{compass_label(observation.azimuth_degrees)}",
        ),
        _card(
            "🌅",
            t("card_moonrise", _lang),
            _format_time(observation.next_rise, location),
            _event_extra(observation.next_rise, now),
        ),
        _card(
            "🌇",
            t("card_moonset", _lang),
            _format_time(observation.next_set, location),
            _event_extra(observation.next_set, now),
        ),
    ]
    for column, card in zip(st.columns(4), cards):
        with column:
            st.markdown(card, unsafe_allow_html=True)

    st.markdown(
        "<div class='moon-footer'>"
        + t("next_phase", _lang).format(
            label=t(major.label.value, _lang), date=major.at.strftime("%Y-%m-%d")
        )
        + "<br>🕒 "
        + t("last_updated", _lang).format(time=_format_time(updated_at, location))
        + "</div>",
        unsafe_allow_html=True,
    )


# --- Location picker ---
_DEVICE = t("option_device", _lang)
_options = [_DEVICE, *PRESET_CITIES]
choice = st.selectbox(
    t("label_location", _lang),
    _options,
    index=_options.index(_settings.default_city) if _settings.default_city in _options else 0,
)

if "geo_attempt" not in st.session_state:
    st.session_state.geo_attempt = 0

selection: LocationSelection
fresh_fix = False
if choice == _DEVICE:
    geo_key = geolocation_key(st.session_state.geo_attempt)
    payload = get_geolocation(component_key=geo_key)
    if payload is None:
        # JS has not answered yet; get_geolocation reruns the script when it does
        st.markdown(
            f"<div class='moon-sub'>{t('loading_location', _lang)}…</div>",
            unsafe_allow_html=True,
        )
        st.stop()
    if st.session_state.get("geo_key") != geo_key:
        st.session_state.geo_key = geo_key
        scheduler.locator = payload_locator(payload)
        fresh_fix = True
    selection = DeviceSelection()
else:
    selection = PresetSelection(name=choice)

if scheduler.selection != selection or fresh_fix:
    logger.info("Selection changed to %s", selection)
    with st.spinner(t("loading_compute", _lang)):
        asyncio.run(scheduler.select_location(selection))


@st.fragment(run_every=_settings.refresh_seconds)
def _moon_panel() -> None:
    if scheduler.due(datetime.now(utc)):
        asyncio.run(scheduler.tick())
    state = scheduler.state

    location = scheduler.location
    st.markdown(
        f"<div class='moon-title'>{t('page_title', _lang)}</div>"
        + (
            f"<div class='moon-sub'>📍 {html.escape(_place_label(location))}</div>"
            if location is not None
            else ""
        ),
        unsafe_allow_html=True,
    )

    if isinstance(state, Failed):
        st.markdown(
            f"<div class='moon-error'>{_error_message(state.error)}</div>",
            unsafe_allow_html=True,
        )
        if st.button(t("btn_retry", _lang), key="retry_btn", use_container_width=True):
            if isinstance(scheduler.selection, DeviceSelection) and scheduler.location is None:
                # ask the browser again; the stored payload would repeat the same error
                st.session_state.geo_attempt += 1
                st.rerun()
            asyncio.run(scheduler.refresh())
            st.rerun(scope="fragment")
        return

    if not isinstance(state, Ready):
        st.markdown(
            f"<div class='moon-sub'>{t('loading_compute', _lang)}…</div>",
            unsafe_allow_html=True,
        )
        return

    _render_observation(state.observation, state.location, state.updated_at)
    if st.button(t("btn_refresh", _lang), key="refresh_btn", use_container_width=True):
        asyncio.run(scheduler.refresh())
        st.rerun(scope="fragment")


_moon_panel()
