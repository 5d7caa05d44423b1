from shiny import reactive
from shiny.express import input, ui
from shinywidgets import render_plotly

from pict_employment.config import ALL_COUNTRIES, DEFAULT_STATUS, STATUS_OPTIONS
from pict_employment.data_manager import EmploymentData, TableCache
from pict_employment.loader import DataLoadError
from pict_employment.plotting import (
    create_age_bar,
    create_composition_bar,
    create_composition_diverging,
    create_gender_lines,
    create_ratio_chart,
    create_trend_lines,
    empty_figure,
)
from pict_employment.selection import SelectionSequencer

# Helpers for UI mapping
STATUS_MAPPING = {value: label for label, value in STATUS_OPTIONS}

# ======================================================
#  SESSION STATE
# ======================================================
# The table is loaded once per session and replaced wholesale on refresh.
data = EmploymentData(TableCache())
selections = SelectionSequencer()


def _load(force: bool = False):
    try:
        data.cache.get(force_reload=force)
    except DataLoadError as exc:
        return str(exc)
    return None


load_error = reactive.Value(_load())
table_version = reactive.Value(0)


def _country_choices() -> dict:
    if not data.cache.loaded:
        return {}
    return {o.code: o.name for o in data.country_options()}


COUNTRY_CHOICES = _country_choices()
DEFAULT_COUNTRY = data.default_country() if data.cache.loaded else None


# ======================================================
#  UI LAYOUT
# ======================================================
ui.page_opts(
    title="Pacific Islands Employment: Full-time and Part-time Work",
    fillable=False,
    full_width=True,
    id="page",
    lang="en",
)

with ui.sidebar(open="always", position="right"):
    ui.input_select(
        "country",
        "Country / territory",
        COUNTRY_CHOICES,
        selected=DEFAULT_COUNTRY,
    )
    ui.input_radio_buttons(
        "status",
        "Gender chart employment status",
        STATUS_MAPPING,
        selected=DEFAULT_STATUS,
    )
    ui.input_select(
        "trend_country",
        "Trend chart countries",
        {ALL_COUNTRIES: "All countries", **COUNTRY_CHOICES},
        selected=ALL_COUNTRIES,
    )
    ui.input_action_button("refresh", "Reload data", class_="btn-primary mt-3")


@reactive.effect
@reactive.event(input.refresh)
def _refresh():
    load_error.set(_load(force=True))
    table_version.set(table_version.get() + 1)
    choices = _country_choices()
    ui.update_select("country", choices=choices, selected=input.country())
    ui.update_select(
        "trend_country",
        choices={ALL_COUNTRIES: "All countries", **choices},
        selected=input.trend_country(),
    )


@reactive.calc
def composition():
    table_version.get()
    if load_error.get() is not None:
        return []
    return data.get_composition()


@reactive.calc
def time_series():
    table_version.get()
    if load_error.get() is not None:
        return []
    return data.get_time_series()


async def _fetch(slot: str, func, *args):
    # Independent charts query concurrently; a newer selection for the same
    # slot makes the older result stale and it is dropped on arrival.
    await selections.submit(slot, func, *args)
    return selections.result(slot)


@reactive.calc
async def age_breakdown():
    table_version.get()
    if load_error.get() is not None or not input.country():
        return None
    return await _fetch("age", data.get_age_breakdown, input.country())


@reactive.calc
async def gender_trend():
    table_version.get()
    if load_error.get() is not None or not input.country():
        return None
    return await _fetch("gender", data.get_gender_trend, input.country(), input.status())


@reactive.calc
async def ratio_trend():
    table_version.get()
    if load_error.get() is not None or not input.country():
        return None
    return await _fetch("ratio", data.get_ratio_trend, input.country())


with ui.navset_card_tab(id="main_tabs"):
    with ui.nav_panel("Composition"):

        @render_plotly
        def composition_plot():
            if load_error.get() is not None:
                return empty_figure(f"Failed to load data: {load_error.get()}")
            return create_composition_bar(composition())

        @render_plotly
        def composition_share_plot():
            return create_composition_diverging(composition())

    with ui.nav_panel("Trends"):

        @render_plotly
        def trend_plot():
            selected = input.trend_country()
            codes = None if selected == ALL_COUNTRIES else [selected]
            return create_trend_lines(time_series(), codes)

    with ui.nav_panel("Age"):

        @render_plotly
        async def age_plot():
            return create_age_bar(await age_breakdown())

    with ui.nav_panel("Gender"):

        @render_plotly
        async def gender_plot():
            return create_gender_lines(await gender_trend())

    with ui.nav_panel("Full-time ratio"):

        @render_plotly
        async def ratio_plot():
            return create_ratio_chart(await ratio_trend())

ui.markdown(
    "Source: Pacific Data Hub, *Employed population by full-time/part-time "
    "status* (SPC, DF_EMPLOYED_FTPT)."
)
