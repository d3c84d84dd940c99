"""Shared Availability Calendar App

Stateless: the whole calendar lives in the `state` query parameter. Every
edit posts the current parameter back and is answered with a redirect to the
re-encoded URL.
"""

import logging
import os
import sys
from datetime import date
from pathlib import Path
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from calendar_utils import (
    add_person, common_slots, day_summary, format_date_key, has_day_slot,
    is_day_available, leading_blanks, month_days,
    remove_person, set_month, shift_month, toggle_day_slot,
)
from exceptions import IncompleteSchemaError, LastPersonError, PersonNotFoundError
from slot_vocabulary import DaySlot
from state_codec import decode_state, encode_state
from state_model import LogicalState, build_default_state, state_from_json, state_to_json
from url_binding import STATE_PARAM, build_url_with_state


# Define log format
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
TEMPLATES_DIR = Path(os.getenv("TEMPLATES_DIR", Path(__file__).resolve().parent.parent / "templates"))
VIEWS = ("person", "overall")

# Create a handler with the custom format
formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format=LOG_FORMAT,
    datefmt=LOG_DATE_FORMAT,
    handlers=[handler]
)

# Apply the same format to all relevant Uvicorn loggers
for logger_name in ["uvicorn", "uvicorn.access"]:
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()
    logger.propagate = False
    logger.addHandler(handler)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

app = FastAPI()


def load_or_default(encoded: str | None) -> tuple[LogicalState, bool]:
    """Decode a state parameter. Returns (state, is_default)."""
    state = decode_state(encoded)
    if state is None:
        if encoded:
            logging.warning("Could not decode state parameter, using default state")
        return build_default_state(), True
    return state, False


def redirect_to_calendar(request: Request, state: LogicalState, **params) -> RedirectResponse:
    """Send the browser to the calendar page for state, replacing the POST in history."""
    url = request.url_for("serve_calendar").include_query_params(**params)
    return RedirectResponse(
        build_url_with_state(str(url), state),
        status_code=status.HTTP_303_SEE_OTHER
    )


def _form_int(form, name: str, default: int | None = None) -> int:
    value = form.get(name)
    if value in (None, "") and default is not None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid {name}.") from e


def _view(value) -> str:
    return value if value in VIEWS else "person"


@app.get("/")
async def serve_calendar(request: Request, person: int = 0, view: str = "person"):
    """Serve the calendar page for the state in the URL."""
    encoded = request.query_params.get(STATE_PARAM)
    state, _ = load_or_default(encoded)

    # Always show the canonical encoding in the address bar.
    if encoded != encode_state(state):
        return RedirectResponse(build_url_with_state(str(request.url), state))

    person = min(max(person, 0), max(state.total - 1, 0))
    view = _view(view)
    days = []
    for day in month_days(state.base_month):
        days.append({
            "date": day,
            "key": format_date_key(day),
            "summary": day_summary(state, day),
            "common": common_slots(state, day),
            "available": bool(state.people) and is_day_available(state, person, day),
            "selected": {
                slot: bool(state.people) and has_day_slot(state, person, day, slot)
                for slot in DaySlot
            },
        })

    return templates.TemplateResponse(
        request=request,
        name="calendar.html",
        context={
            "state": state,
            "encoded_state": encoded,
            "active_person": person,
            "view": view,
            "days": days,
            "leading_blanks": leading_blanks(state.base_month),
            "month_value": f"{state.base_month.year:04d}-{state.base_month.month:02d}",
            "month_label": f"{state.base_month:%B %Y}",
            "slots": list(DaySlot),
            "share_url": str(request.url),
            "person_urls": [
                str(request.url.include_query_params(person=i, view="person"))
                for i in range(state.total)
            ],
            "overall_url": str(request.url.include_query_params(view="overall")),
        }
    )


@app.post("/toggle")
async def toggle_slot(request: Request):
    """Toggle one slot for one person."""
    form = await request.form()
    state, _ = load_or_default(form.get(STATE_PARAM))
    person = _form_int(form, "person")
    try:
        day = date.fromisoformat(form.get("date", ""))
        slot = DaySlot(form.get("slot"))
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail="Invalid date or slot.") from e

    try:
        state = toggle_day_slot(state, person, day, slot)
    except PersonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    logging.info("Toggled %s|%s for person %s", day, slot.value, person)
    return redirect_to_calendar(request, state, person=person, view="person")


@app.post("/people")
async def create_person(request: Request):
    """Add a person and make them the active one."""
    form = await request.form()
    state, _ = load_or_default(form.get(STATE_PARAM))
    name = str(form.get("name", ""))[:40]
    new_state = add_person(state, name)

    if new_state is state:
        logging.info("Ignored blank or duplicate person name")
        active = _form_int(form, "active", 0)
    else:
        logging.info("Added person %s", name.strip())
        active = new_state.total - 1
    return redirect_to_calendar(request, new_state, person=active, view="person")


@app.post("/people/{index}/delete")
async def delete_person(request: Request, index: int):
    """Remove a person. The last remaining person cannot be removed."""
    form = await request.form()
    state, _ = load_or_default(form.get(STATE_PARAM))
    active = _form_int(form, "active", 0)

    try:
        state = remove_person(state, index)
    except PersonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except LastPersonError:
        logging.info("Refusing to remove the only person")
        return redirect_to_calendar(request, state, person=active, view="person")

    if index <= active:
        active = max(0, active - 1)
    logging.info("Removed person %s", index)
    return redirect_to_calendar(request, state, person=active, view="person")


@app.post("/month")
async def change_month(request: Request):
    """Move to another month, either by offset or to an explicit YYYY-MM."""
    form = await request.form()
    state, _ = load_or_default(form.get(STATE_PARAM))
    active = _form_int(form, "active", 0)

    try:
        if form.get("month"):
            state = set_month(state, str(form.get("month")))
        else:
            state = shift_month(state, _form_int(form, "delta", 0))
    except (ValueError, OverflowError) as e:
        raise HTTPException(status_code=400, detail="Month out of range.") from e

    return redirect_to_calendar(request, state, person=active, view=_view(form.get("view")))


@app.get("/api/state")
async def read_state(request: Request):
    """Decode the `state` parameter into its logical JSON form."""
    state, is_default = load_or_default(request.query_params.get(STATE_PARAM))
    return {"state": state_to_json(state), "default": is_default}


@app.post("/api/encode")
async def write_state(request: Request):
    """Encode a logical JSON state and return the parameter plus a share link."""
    try:
        state = state_from_json(await request.json())
    except (IncompleteSchemaError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    share_url = build_url_with_state(str(request.url_for("serve_calendar")), state)
    return {"state": encode_state(state), "url": share_url}
