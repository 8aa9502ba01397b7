"""
app.py — Lift Log Studio
Streamlit front-end: exercise catalog, workout generator, active workout
logger with rest timer. Google Sheets is the backend when configured,
otherwise everything lives in memory for the browser session.
"""

import json
import random

import streamlit as st

from catalog import create_exercise, delete_exercise, list_exercises, update_exercise
from errors import EmptyResultError, GatewayError, ValidationError
from fitness_logic import (
    MAX_EXERCISES, format_time, generate_workout, smart_swap, suggest_workout_name,
)
from gateway import Auth, InMemoryGateway, SheetsGateway, authorize, open_spreadsheet
from models import EXERCISE_TYPES, MUSCLE_GROUPS, WEIGHT_TYPES
from planner import delete_workout, list_workouts, save_workout
from rest_timer import PRESETS, RestTimer
from settings import configure_logging, get_settings
from workout_session import ActiveWorkoutSession, SessionContext

settings = get_settings()

# ─────────────────────────────────────────────
# Page Config
# ─────────────────────────────────────────────

st.set_page_config(
    page_title="Lift Log Studio",
    page_icon="🏋️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .exercise-card {
        background: white;
        border-radius: 12px;
        padding: 1.2rem;
        margin-bottom: 0.8rem;
        box-shadow: 0 2px 8px rgba(0,0,0,0.06);
        border-left: 4px solid #2f6fb0;
    }
    .exercise-card h4 { margin: 0 0 0.4rem 0; color: #1c2b3a; }
    .exercise-card .meta { color: #6b7c8b; font-size: 0.85rem; }
    .timer-display {
        font-size: 2.5rem;
        font-weight: 300;
        text-align: center;
        color: #1c2b3a;
        font-family: 'Courier New', monospace;
        padding: 0.5rem;
    }
    .studio-header { text-align: center; padding: 1rem 0 0.5rem 0; }
    .studio-header h1 { color: #1c2b3a; font-weight: 300; font-size: 2.2rem; }
</style>
""", unsafe_allow_html=True)


# ─────────────────────────────────────────────
# Backend Connection
# ─────────────────────────────────────────────

@st.cache_resource
def configure_once():
    configure_logging(settings)
    return True


@st.cache_resource
def get_spreadsheet():
    """Authenticate with Google using Streamlit secrets.

    Supports TWO formats:
    1. Simple: gcp_service_account_json = '{...entire JSON key...}'
    2. Traditional: [gcp_service_account] section with individual fields
    """
    if settings.offline:
        return None
    try:
        if "gcp_service_account_json" in st.secrets:
            creds_dict = json.loads(st.secrets["gcp_service_account_json"])
        elif "gcp_service_account" in st.secrets:
            creds_dict = dict(st.secrets["gcp_service_account"])
        else:
            return None
        client = authorize(creds_dict)
        return open_spreadsheet(
            client,
            sheet_url=st.secrets.get("sheet_url", ""),
            sheet_id=st.secrets.get("sheet_id", ""),
            title=settings.spreadsheet_title,
        )
    except json.JSONDecodeError as e:
        st.error(f"Invalid JSON in gcp_service_account_json: {e}")
        return None
    except GatewayError as e:
        st.error(str(e))
        return None


def get_gateway():
    """One gateway per browser session; the spreadsheet handle is shared."""
    if "gateway" not in st.session_state:
        spreadsheet = get_spreadsheet()
        if spreadsheet is None:
            st.session_state.gateway = InMemoryGateway(Auth())
        else:
            st.session_state.gateway = SheetsGateway(spreadsheet, Auth())
    return st.session_state.gateway


def attempt(action, *args, success: str = "", **kwargs):
    """Run one store-backed action and turn failures into notifications."""
    try:
        result = action(*args, **kwargs)
    except ValidationError as e:
        st.warning(str(e))
        return None
    except EmptyResultError as e:
        st.toast(str(e))
        return None
    except GatewayError as e:
        st.error(f"Operation failed: {e}")
        return None
    if success:
        st.toast(success)
    return result


configure_once()
gateway = get_gateway()

# ─────────────────────────────────────────────
# Session State Initialization
# ─────────────────────────────────────────────

DEFAULTS = {
    "drafts": [],
    "draft_muscle_group": "",
    "workout_name": "",
    "rng": random.Random(),
    "weight_nonce": 0,
    "rest_timer": None,
    "session": None,
}
for key, val in DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = val

if st.session_state.rest_timer is None:
    st.session_state.rest_timer = RestTimer(
        settings.default_rest_seconds,
        on_complete=lambda: st.toast("⏰ Rest is over!"),
    )


# ─────────────────────────────────────────────
# Sidebar
# ─────────────────────────────────────────────

with st.sidebar:
    st.markdown("## 🏋️ Lift Log")
    st.markdown("---")

    if gateway.auth.user_id is None:
        profile = st.selectbox("Select User Profile", settings.profiles)
        if st.button("Log in", type="primary", use_container_width=True):
            gateway.auth.login(profile)
            st.rerun()
    else:
        st.caption(f"Logged in as: **{gateway.auth.user_id}**")
        if st.button("Log out", use_container_width=True):
            gateway.auth.logout()
            st.session_state.session = None
            st.session_state.drafts = []
            st.rerun()

    st.markdown("---")
    backend = "Google Sheets" if isinstance(gateway, SheetsGateway) else "Local (not saved)"
    st.caption(f"Storage: {backend}")
    st.caption("Lift Log Studio v1.0")


st.markdown("""
<div class="studio-header">
    <h1>Lift Log Studio</h1>
</div>
""", unsafe_allow_html=True)

if gateway.auth.user_id is None:
    st.info("Pick a profile in the sidebar and log in to start training.")
    st.stop()

user_id = gateway.auth.me()
if st.session_state.session is None:
    st.session_state.session = ActiveWorkoutSession(
        gateway, SessionContext(user_id=user_id), rng=st.session_state.rng
    )
session: ActiveWorkoutSession = st.session_state.session

tab_catalog, tab_generator, tab_active, tab_history, tab_stats = st.tabs(
    ["🏋️ Exercises", "🎲 Generator", "▶️ Active Workout", "📖 History", "📊 Statistics"]
)


# ─────────────────────────────────────────────
# View: Exercise Catalog
# ─────────────────────────────────────────────

def exercise_form(key: str, exercise=None):
    """Add/edit form. Returns the field dict on submit, else None."""
    with st.form(key, clear_on_submit=exercise is None):
        name = st.text_input("Name", value=exercise.name if exercise else "")
        c1, c2, c3 = st.columns(3)
        with c1:
            muscle_group = st.selectbox(
                "Muscle group", MUSCLE_GROUPS,
                index=MUSCLE_GROUPS.index(exercise.muscle_group) if exercise else 0,
            )
        with c2:
            weight_type = st.selectbox(
                "Weight type", list(WEIGHT_TYPES), format_func=WEIGHT_TYPES.get,
                index=list(WEIGHT_TYPES).index(exercise.weight_type) if exercise else 0,
            )
        with c3:
            exercise_type = st.selectbox(
                "Exercise type", EXERCISE_TYPES,
                index=EXERCISE_TYPES.index(exercise.exercise_type) if exercise else 0,
            )
        c4, c5 = st.columns(2)
        with c4:
            sets = st.number_input("Sets", min_value=1, value=exercise.sets if exercise else 3)
        with c5:
            reps = st.number_input("Reps", min_value=1, value=exercise.reps if exercise else 10)
        technique = st.text_area("Technique", value=exercise.technique if exercise else "")
        equipment_name = st.text_input("Equipment", value=exercise.equipment_name if exercise else "")
        equipment_setup = st.text_input("Equipment setup", value=exercise.equipment_setup if exercise else "")
        equipment_photo = st.text_input("Equipment photo URL", value=exercise.equipment_photo if exercise else "")
        if st.form_submit_button("💾 Save"):
            return {
                "name": name, "muscle_group": muscle_group, "weight_type": weight_type,
                "exercise_type": exercise_type, "sets": sets, "reps": reps,
                "technique": technique, "equipment_name": equipment_name,
                "equipment_setup": equipment_setup, "equipment_photo": equipment_photo,
            }
    return None


with tab_catalog:
    st.markdown("### Exercise Catalog")
    with st.expander("➕ Add exercise"):
        fields = exercise_form("new_exercise")
        if fields and attempt(create_exercise, gateway, user_id, success="Exercise added ✅", **fields):
            st.rerun()

    exercises = attempt(list_exercises, gateway, user_id) or []
    if not exercises:
        st.info("Your catalog is empty. Add the exercises you actually do.")
    for ex in exercises:
        with st.expander(f"**{ex.name}** · {ex.muscle_group} · {ex.exercise_type}"):
            st.caption(f"{WEIGHT_TYPES[ex.weight_type]} · {ex.sets} × {ex.reps}")
            if ex.technique:
                st.markdown(ex.technique)
            if ex.equipment_name:
                st.markdown(f"*Equipment:* {ex.equipment_name} {ex.equipment_setup}")
            if ex.equipment_photo:
                st.image(ex.equipment_photo, width=240)
            fields = exercise_form(f"edit_{ex.id}", ex)
            if fields and attempt(update_exercise, gateway, ex.id, success="Exercise updated", **fields):
                st.rerun()
            if st.button("🗑 Delete", key=f"del_ex_{ex.id}"):
                attempt(delete_exercise, gateway, ex.id, success="Exercise deleted")
                st.rerun()


# ─────────────────────────────────────────────
# View: Generator
# ─────────────────────────────────────────────

with tab_generator:
    st.markdown("### Build Your Session")

    col1, col2, col3 = st.columns(3)
    with col1:
        muscle_group = st.selectbox("Muscle group", MUSCLE_GROUPS)
    with col2:
        count = st.slider("Exercises", 1, MAX_EXERCISES, 3)
    with col3:
        types = st.multiselect("Exercise types", EXERCISE_TYPES, default=["main", "auxiliary"])

    if st.button("🎲 Generate Workout", type="primary", use_container_width=True):
        catalog = attempt(list_exercises, gateway, user_id)
        drafts = None
        if catalog is not None:
            drafts = attempt(generate_workout, catalog, muscle_group, count, types, rng=st.session_state.rng)
        if drafts:
            st.session_state.drafts = drafts
            st.session_state.draft_muscle_group = muscle_group
            st.session_state.workout_name = suggest_workout_name(muscle_group)
            st.toast(f"Generated {len(drafts)} exercises!")

    drafts = st.session_state.drafts
    if drafts:
        st.session_state.workout_name = st.text_input("Workout name", value=st.session_state.workout_name)
        for i, draft in enumerate(drafts):
            c1, c2 = st.columns([8, 1])
            with c1:
                st.markdown(
                    f"""<div class="exercise-card">
                    <h4>{draft.order}. {draft.exercise.name}</h4>
                    <div class="meta">{draft.exercise.exercise_type} · {draft.sets} × {draft.reps}</div>
                    </div>""",
                    unsafe_allow_html=True,
                )
            with c2:
                if st.button("🔄", key=f"swap_{i}", help="Swap this exercise"):
                    catalog = attempt(list_exercises, gateway, user_id)
                    new_ex = None
                    if catalog is not None:
                        new_ex = attempt(smart_swap, catalog, drafts, i, rng=st.session_state.rng)
                    if new_ex:
                        st.toast(f'Swapped in "{new_ex.name}"')
                        st.rerun()

        if st.button("💾 Save Workout", use_container_width=True):
            saved = attempt(
                save_workout, gateway, user_id, st.session_state.workout_name,
                st.session_state.draft_muscle_group, drafts, success="Workout saved! ✅",
            )
            if saved:
                st.session_state.drafts = []
                st.rerun()

    st.markdown("---")
    st.markdown("#### Saved Workouts")
    for workout in attempt(list_workouts, gateway, user_id) or []:
        c1, c2, c3 = st.columns([6, 1, 1])
        with c1:
            st.markdown(f"**{workout.name}** · {workout.muscle_group} · _{workout.status}_")
        with c2:
            if st.button("▶️", key=f"start_{workout.id}", disabled=workout.status != "planned",
                         help="Start workout"):
                if attempt(session.start, workout.id, success="Workout started! Open Active Workout"):
                    st.rerun()
        with c3:
            if st.button("🗑", key=f"del_w_{workout.id}", help="Delete workout"):
                attempt(delete_workout, gateway, workout.id, success="Workout deleted")
                if workout.id == session.context.workout_id:
                    st.session_state.session = None
                st.rerun()


# ─────────────────────────────────────────────
# View: Active Workout
# ─────────────────────────────────────────────

@st.fragment(run_every=1)
def workout_clock():
    st.markdown(f'<div class="timer-display">{format_time(session.elapsed_seconds())}</div>',
                unsafe_allow_html=True)


@st.fragment(run_every=1)
def rest_timer_panel():
    timer: RestTimer = st.session_state.rest_timer
    timer.tick()
    st.markdown(f'<div class="timer-display">{timer.display()}</div>', unsafe_allow_html=True)
    st.progress(timer.progress / 100)
    preset_cols = st.columns(len(PRESETS))
    for col, (label, seconds) in zip(preset_cols, PRESETS.items()):
        with col:
            if st.button(label, key=f"preset_{seconds}"):
                timer.set_time(seconds)
    m_col, s_col, set_col = st.columns([2, 2, 1])
    with m_col:
        minutes = st.number_input("Minutes", min_value=0, max_value=59, value=timer.initial // 60, key="rest_minutes")
    with s_col:
        seconds = st.number_input("Seconds", min_value=0, max_value=59, value=timer.initial % 60, key="rest_seconds")
    with set_col:
        if st.button("Set", key="rest_custom", use_container_width=True):
            attempt(timer.set_custom, minutes, seconds)
    c1, c2 = st.columns(2)
    with c1:
        if timer.running:
            if st.button("⏸ Pause", use_container_width=True):
                timer.pause()
        elif st.button("▶ Start", use_container_width=True):
            timer.start()
    with c2:
        if st.button("↺ Reset", use_container_width=True):
            timer.reset()


with tab_active:
    if session.workout is None:
        attempt(session.load)

    if session.workout is None:
        st.info("No active workout. Start one from the Generator tab.")
    elif not session.exercises:
        st.warning("This workout has no exercises.")
        if st.button("✅ Finish Workout"):
            attempt(session.complete, success="Workout finished")
            st.rerun()
    else:
        slot = session.current_exercise
        ex = slot.exercise
        idx, total = session.cursor, len(session.exercises)

        st.markdown(f"## {session.workout.name}")
        workout_clock()
        st.progress(min(session.progress, 100.0) / 100,
                    text=f"Exercise {idx + 1} of {total} · {session.progress:.0f}%")

        nav1, nav2, nav3 = st.columns([1, 3, 1])
        with nav1:
            if st.button("← Prev", disabled=idx == 0):
                if attempt(session.prev_exercise):
                    st.session_state.weight_nonce += 1
                st.rerun()
        with nav3:
            if st.button("Next →", disabled=idx >= total - 1):
                if attempt(session.next_exercise):
                    st.session_state.weight_nonce += 1
                st.rerun()

        main_col, side_col = st.columns([3, 2])
        with main_col:
            if ex is None:
                st.warning("This exercise was removed from the catalog.")
            else:
                st.markdown(f"### {ex.name}")
                info = st.columns(3)
                info[0].metric("Type", ex.exercise_type)
                info[1].metric("Weight", WEIGHT_TYPES[ex.weight_type])
                info[2].metric("Plan", f"{slot.sets} × {slot.reps}")
                if ex.technique:
                    st.markdown(ex.technique)
                if ex.equipment_setup:
                    st.caption(f"Setup: {ex.equipment_setup}")

            st.markdown("#### Sets")
            for logged in session.sets:
                c1, c2, c3, c4 = st.columns([1, 2, 2, 1])
                c1.markdown(f"**{logged.set_number}**")
                with c2:
                    weight = st.number_input("Weight", min_value=0.0, step=2.5, value=float(logged.weight),
                                             key=f"w_{logged.id}", label_visibility="collapsed")
                with c3:
                    reps = st.number_input("Reps", min_value=0, step=1, value=int(logged.reps),
                                           key=f"r_{logged.id}", label_visibility="collapsed")
                with c4:
                    done = st.checkbox("Done", value=logged.completed, key=f"c_{logged.id}")
                if weight != logged.weight:
                    attempt(session.update_set_weight, logged.id, weight)
                    st.rerun()
                if reps != logged.reps:
                    attempt(session.update_set_reps, logged.id, reps)
                    st.rerun()
                if done != logged.completed:
                    if attempt(session.toggle_set, logged.id):
                        st.toast("Set done! 💪")
                    st.rerun()

            hint = attempt(session.suggested_weight)
            session.pending_weight = st.number_input(
                "Weight for the next set", min_value=0.0, step=2.5, value=float(session.pending_weight),
                key=f"pending_{st.session_state.weight_nonce}",
                help=f"Last time: {hint:g}" if hint is not None else None,
            )
            if st.button("➕ Add Set", use_container_width=True):
                attempt(session.add_set)
                st.rerun()

        with side_col:
            st.markdown("#### Exercises")
            for i, entry in enumerate(session.exercises):
                label = entry.exercise.name if entry.exercise else "Removed exercise"
                if st.button(f"{entry.order}. {label}", key=f"goto_{entry.id}",
                             type="primary" if i == idx else "secondary", use_container_width=True):
                    if attempt(session.go_to, i):
                        st.session_state.weight_nonce += 1
                    st.rerun()

            with st.expander("⏱ Rest Timer", expanded=True):
                rest_timer_panel()

            with st.expander("🔄 Replace Exercise"):
                candidates = attempt(session.replacement_candidates) or []
                if not candidates:
                    st.caption("Nothing else of this type in your catalog.")
                else:
                    choice = st.selectbox("Replace with", candidates, format_func=lambda e: e.name)
                    st.caption("Logged sets for this exercise will be discarded.")
                    if st.button("Replace"):
                        new_ex = attempt(session.replace_current_exercise, choice.id)
                        if new_ex:
                            st.session_state.weight_nonce += 1
                            st.toast(f'Replaced with "{new_ex.name}"')
                            st.rerun()

        st.markdown("---")
        if st.button("✅ Finish Workout", type="primary", use_container_width=True):
            summary = attempt(session.complete)
            if summary:
                st.balloons()
                st.success(
                    f"Workout complete! Time: {format_time(summary.total_time)}, "
                    f"lifted: {summary.total_weight:g} kg"
                )


# ─────────────────────────────────────────────
# View: History / Statistics
# ─────────────────────────────────────────────

with tab_history:
    st.markdown("### 📖 Workout History")
    st.info("Finish your first workout to see it here.")

with tab_stats:
    st.markdown("### 📊 Statistics")
    st.info("Statistics are on the way.")
