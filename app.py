"""
RLV Console
===========
Streamlit operator console for the RLV engine.

Plays the part of in-world objects: pick an issuer from the simulated
region, type '@' command lines, and watch the rule store, the channel
replies and the outfit/movement side effects.

Architecture: one shared SimWorld and one shared RlvEngine for all sessions.
"""

import asyncio
import logging
import streamlit as st
from config import RlvSettings
from world import SimWorld
from rlv_engine import ACTION, DIRECT, QUERY, RlvEngine


# ─────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────

SETTINGS = RlvSettings.from_env()
WORLD_FILE = SETTINGS.world_file

logging.basicConfig(level=logging.DEBUG if SETTINGS.debug_commands else logging.INFO)


# ─────────────────────────────────────────────────────────────────
# Page Setup
# ─────────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="RLV Console",
    page_icon="⛓️",
    layout="wide",
    initial_sidebar_state="expanded"
)


# ─────────────────────────────────────────────────────────────────
# Shared World & Engine Singletons
# ─────────────────────────────────────────────────────────────────

@st.cache_resource
def get_shared_world():
    """
    Load and return the shared simulated world.
    This is a singleton shared across ALL user sessions.
    """
    world = SimWorld(shared_folder=SETTINGS.shared_folder)
    if WORLD_FILE.exists():
        world.load(WORLD_FILE)
        print(f"[RLV] Loaded world: {world.meta.get('name')} ({len(world.objects)} objects)")
    else:
        print("[RLV] No world file found, starting with empty world")
    return world


@st.cache_resource
def get_shared_engine(_world):
    """Return the shared engine instance."""
    print("[RLV] Creating engine")
    engine = RlvEngine(_world, _world, _world, settings=SETTINGS)
    _world.on_item_change = engine.report_item_change
    return engine


def get_world() -> SimWorld:
    return get_shared_world()


def get_engine() -> RlvEngine:
    return get_shared_engine(get_world())


# ─────────────────────────────────────────────────────────────────
# Session State Initialization (Per-User)
# ─────────────────────────────────────────────────────────────────

def init_session_state():
    """Initialize per-user session state."""
    if "messages" not in st.session_state:
        st.session_state.messages = []
    if "issuer_id" not in st.session_state:
        st.session_state.issuer_id = None
    if "outbox_seen" not in st.session_state:
        st.session_state.outbox_seen = 0


init_session_state()


# ─────────────────────────────────────────────────────────────────
# Utility Functions
# ─────────────────────────────────────────────────────────────────

def parse_input_stream(text):
    """Split pasted input into chat lines, skipping blanks and '#' comments."""
    if not text:
        return []
    lines = []
    for raw in text.splitlines():
        cleaned = raw.strip()
        if cleaned and not cleaned.startswith('#'):
            lines.append(cleaned)
    return lines


def save_world() -> str:
    """Save the world state to disk."""
    world = get_world()
    world.save(WORLD_FILE)
    msg = f"World saved. ({len(world.objects)} objects)"
    print(f"[RLV] {msg}")
    return msg


def reload_world() -> str:
    """Reload the world from disk (discards unsaved changes!)."""
    world = get_world()
    if WORLD_FILE.exists():
        world.load(WORLD_FILE)
        return f"World reloaded from disk. ({len(world.objects)} objects)"
    return "No world file found!"


def send_line(line: str):
    """Feed one chat line to the engine as the selected issuer."""
    world = get_world()
    engine = get_engine()
    issuer_id = st.session_state.issuer_id
    obj = world.objects.get(issuer_id) if issuer_id else None
    issuer_name = obj.name if obj else "Unknown Object"

    st.session_state.messages.append({"role": "user", "content": f"**{issuer_name}:** {line}"})
    handled = asyncio.run(engine.process_chat_line(line, issuer_id or "", issuer_name))
    if not handled:
        st.session_state.messages.append({"role": "assistant", "content": "_(ordinary chat, not an RLV command)_"})

    # Surface replies sent since the last line
    new_replies = world.outbox[st.session_state.outbox_seen:]
    st.session_state.outbox_seen = len(world.outbox)
    for channel, text in new_replies:
        st.session_state.messages.append({"role": "assistant", "content": f"📡 `{channel}`: {text}"})


# ─────────────────────────────────────────────────────────────────
# Sidebar
# ─────────────────────────────────────────────────────────────────

def render_sidebar():
    world = get_world()
    engine = get_engine()

    st.sidebar.markdown(f"### ⛓️ {world.meta.get('name', 'RLV')}")
    st.sidebar.caption(f"Region: {world.region_name()} | Rules: {len(engine.store)}")

    enabled = st.sidebar.toggle("RLV enabled", value=engine.enabled)
    if enabled != engine.enabled:
        engine.enabled = enabled
        st.rerun()

    debug = st.sidebar.toggle("Debug commands", value=engine.settings.debug_commands)
    engine.settings.debug_commands = debug

    # Issuer picker
    objects = list(world.objects.values())
    if objects:
        labels = {o.id: f"{o.name} ({o.id[:8]})" for o in objects}
        ids = list(labels)
        current = st.session_state.issuer_id if st.session_state.issuer_id in labels else ids[0]
        st.session_state.issuer_id = st.sidebar.selectbox(
            "Speak as", ids, index=ids.index(current), format_func=labels.get)
    else:
        st.sidebar.warning("No objects in the region.")

    with st.sidebar.expander("🧹 Maintenance", expanded=False):
        col1, col2 = st.columns(2)
        with col1:
            if st.button("Sweep", use_container_width=True):
                evicted = engine.collector.sweep()
                st.toast(f"Evicted {len(evicted)} issuer(s)")
            if st.button("Save", use_container_width=True):
                st.toast(save_world())
        with col2:
            if st.button("Derez", use_container_width=True, disabled=not st.session_state.issuer_id):
                world.remove_object(st.session_state.issuer_id)
                st.session_state.issuer_id = None
                st.rerun()
            if st.button("Reload", use_container_width=True):
                st.toast(reload_world())

    with st.sidebar.expander("🔒 Active Restrictions", expanded=True):
        rules = engine.store.rules()
        if rules:
            st.dataframe(
                [{"behaviour": r.behaviour, "option": r.option, "issuer": r.issuer_name or r.issuer_id}
                 for r in rules],
                hide_index=True, use_container_width=True)
        else:
            st.caption("No active restrictions.")


# ─────────────────────────────────────────────────────────────────
# Main View
# ─────────────────────────────────────────────────────────────────

render_sidebar()

st.title("⛓️ RLV Console")

tab_chat, tab_outbox, tab_actions, tab_verbs = st.tabs(["💬 Chat", "📡 Replies", "🎬 Actions", "📖 Verbs"])

with tab_chat:
    for msg in st.session_state.messages:
        with st.chat_message(msg["role"]):
            st.markdown(msg["content"])

with tab_outbox:
    outbox = get_world().outbox
    if outbox:
        st.dataframe([{"channel": c, "text": t} for c, t in outbox], hide_index=True, use_container_width=True)
    else:
        st.info("No channel replies yet. Try `@versionnew=2222`.")

with tab_actions:
    actions = get_world().actions
    if actions:
        st.code("\n".join(actions))
    else:
        st.info("No side effects yet. Try `@tpto:128/128/25=force`.")

with tab_verbs:
    kind_icons = {QUERY: "❓", ACTION: "⚡", DIRECT: "🧹"}
    st.dataframe(
        [{"kind": kind_icons.get(spec.kind, spec.kind), "usage": spec.usage, "help": spec.help}
         for spec in get_engine().command_meta.values()],
        hide_index=True, use_container_width=True)


# ─────────────────────────────────────────────────────────────────
# Command Input (Sticky Footer)
# ─────────────────────────────────────────────────────────────────

if prompt := st.chat_input("Type a chat line, e.g. @detach=n,@sendchat=n"):
    for line in parse_input_stream(prompt):
        send_line(line)
    st.rerun()
