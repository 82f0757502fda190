# ==============================================================================
# Warehouse Queries
# ==============================================================================
"""
BigQuery SQL for the four views derived from one day of raw events.

Event parameters live in the repeated ``event_params`` record; the macros
below project them into flat columns with correlated UNNEST subqueries.
Templates are rendered with Jinja2 against a quoted table reference.
"""

from jinja2 import Environment

from eventsync.base.repositories import (
    VIEW_CTA_CLICKS,
    VIEW_PAGEVIEWS,
    VIEW_SESSIONS,
    VIEW_VIDEO_EVENTS,
)

VIDEO_EVENT_NAMES = ("video_start", "video_pause", "video_progress", "video_complete")

_MACROS = """
{%- macro param_str(key) -%}
(SELECT ep.value.string_value FROM UNNEST(event_params) ep WHERE ep.key = '{{ key }}')
{%- endmacro -%}
{%- macro param_int(key) -%}
(SELECT ep.value.int_value FROM UNNEST(event_params) ep WHERE ep.key = '{{ key }}')
{%- endmacro -%}
{%- macro param_dbl(key) -%}
(SELECT ep.value.double_value FROM UNNEST(event_params) ep WHERE ep.key = '{{ key }}')
{%- endmacro -%}
{%- macro user_prop_str(key) -%}
(SELECT up.value.string_value FROM UNNEST(user_properties) up WHERE up.key = '{{ key }}')
{%- endmacro -%}
{%- macro locale() -%}
COALESCE({{ param_str('locale') }}, {{ user_prop_str('language') }})
{%- endmacro -%}
"""

# Earliest and latest event per (user_pseudo_id, ga_session_id)
SESSIONS_SQL = """
WITH base AS (
  SELECT
    user_pseudo_id,
    {{ param_int('ga_session_id') }} AS ga_session_id,
    event_timestamp,
    geo.country AS country,
    geo.city AS city,
    device.category AS device_category,
    device.operating_system AS os,
    device.web_info.browser AS browser,
    {{ locale() }} AS language,
    {{ param_str('page_referrer') }} AS referrer
  FROM {{ table }}
  WHERE {{ param_int('ga_session_id') }} IS NOT NULL
)
SELECT
  user_pseudo_id,
  ga_session_id,
  MIN(event_timestamp) AS first_ts,
  MAX(event_timestamp) AS last_ts,
  ANY_VALUE(country) AS country,
  ANY_VALUE(city) AS city,
  ANY_VALUE(language) AS language,
  ANY_VALUE(device_category) AS device_category,
  ANY_VALUE(os) AS os,
  ANY_VALUE(browser) AS browser,
  ANY_VALUE(referrer) AS referrer
FROM base
GROUP BY user_pseudo_id, ga_session_id
ORDER BY first_ts
"""

PAGEVIEWS_SQL = """
SELECT
  event_timestamp,
  {{ param_int('ga_session_id') }} AS ga_session_id,
  user_pseudo_id,
  {{ param_str('page_location') }} AS page_location,
  {{ param_str('page_referrer') }} AS page_referrer,
  {{ param_str('page_title') }} AS page_title,
  {{ locale() }} AS locale,
  geo.country AS country,
  geo.city AS city
FROM {{ table }}
WHERE event_name = 'page_view'
ORDER BY event_timestamp
"""

VIDEO_EVENTS_SQL = """
SELECT
  event_name,
  event_timestamp,
  {{ param_int('ga_session_id') }} AS ga_session_id,
  user_pseudo_id,
  {{ param_str('video_id') }} AS video_id,
  {{ param_str('video_title') }} AS video_title,
  {{ param_str('gallery') }} AS gallery,
  {{ param_str('player') }} AS player,
  {{ locale() }} AS locale,
  COALESCE({{ param_dbl('current_time') }}, {{ param_int('current_time') }}) AS current_time_seconds,
  CAST({{ param_int('progress_percent') }} AS INT64) AS progress_percent,
  COALESCE({{ param_dbl('watch_time_seconds') }}, CAST({{ param_int('watch_time_seconds') }} AS FLOAT64)) AS watch_time_seconds
FROM {{ table }}
WHERE event_name IN ({% for name in video_events %}'{{ name }}'{% if not loop.last %}, {% endif %}{% endfor %})
ORDER BY event_timestamp
"""

CTA_CLICKS_SQL = """
SELECT
  event_timestamp,
  {{ param_int('ga_session_id') }} AS ga_session_id,
  user_pseudo_id,
  {{ param_str('cta_id') }} AS cta_id,
  COALESCE({{ param_str('page_path') }}, {{ param_str('page_location') }}) AS page_path,
  {{ locale() }} AS locale
FROM {{ table }}
WHERE event_name = 'cta_click'
ORDER BY event_timestamp
"""

_env = Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True)

_TEMPLATES = {
    VIEW_SESSIONS: _env.from_string(_MACROS + SESSIONS_SQL),
    VIEW_PAGEVIEWS: _env.from_string(_MACROS + PAGEVIEWS_SQL),
    VIEW_VIDEO_EVENTS: _env.from_string(_MACROS + VIDEO_EVENTS_SQL),
    VIEW_CTA_CLICKS: _env.from_string(_MACROS + CTA_CLICKS_SQL),
}


def render_query(view: str, table_ref: str) -> str:
    """
    Render the query for one view.

    Args:
        view: One of the VIEW_* names
        table_ref: Quoted, fully qualified day table

    Returns:
        BigQuery Standard SQL text
    """
    return _TEMPLATES[view].render(table=table_ref, video_events=VIDEO_EVENT_NAMES).strip()
