"""codelaunch Events — structured JSONL event log shared by every component."""
from .emitter import EventEmitter, emit_event, get_emitter, set_emitter
from .models import Event, new_run_id

__all__ = ["EventEmitter", "emit_event", "get_emitter", "set_emitter", "Event", "new_run_id"]
