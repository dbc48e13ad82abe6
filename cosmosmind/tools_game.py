"""
CosmosMind Engine: MCP Tool Interface
=====================================
One tool: cosmos_engine(action=...)
Actions: resolve, score, adapt, record_session, reflect, profile,
         start, round, finish

Stateless actions (resolve, score without a session) work on the
arguments alone. Session actions keep a GameSession open on the engine
between calls, addressed by session_id.
"""

import json

from mcp.types import Tool, TextContent

from cosmosmind.engine import CosmosEngine, GameSession
from cosmosmind.log import log
from cosmosmind.resolver import resolve_target
from cosmosmind.shapes import ChallengeType, as_shapes, describe


GAME_ACTIONS = [
    "resolve", "score", "adapt", "record_session", "reflect", "profile",
    "start", "round", "finish",
]


# ── Engine Reference ─────────────────────────────────────

_engine_ref = None


def set_engine(engine: CosmosEngine):
    """Called by server.py to inject the engine."""
    global _engine_ref
    _engine_ref = engine


def _get_engine() -> CosmosEngine:
    global _engine_ref
    if _engine_ref is None:
        _engine_ref = CosmosEngine()
    return _engine_ref


# ── Tool Definition ──────────────────────────────────────

TOOLS = [
    Tool(
        name="cosmos_engine",
        description=(
            "CosmosMind cognitive engine for a shape-finding brain-training game.\n\n"
            "Actions:\n"
            "  resolve: Which shape is correct for a challenge (shapes + challenge_type)\n"
            "  score: Points for one round (correct, response_time_ms, challenge_type, streak)\n"
            "  adapt: Step the difficulty controller of an open session\n"
            "  record_session: Fold a finished session summary into the player mind\n"
            "  reflect: Post-session reflection with insights (session_stats)\n"
            "  profile: Current player mind and progress\n"
            "  start: Open a session (sector_id, chamber_id), returns session_id\n"
            "  round: Judge, score and adapt for one selection in an open session\n"
            "  finish: Close a session, record it and reflect"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": GAME_ACTIONS,
                    "description": "Action to perform",
                },
                "shapes": {
                    "type": "array",
                    "items": {"type": "object"},
                    "description": "resolve/round: Shapes on screen (id, type, size, x, y, color, ...)",
                },
                "challenge_type": {
                    "type": "string",
                    "description": "resolve/score/round: Challenge type name",
                },
                "target": {
                    "type": "string",
                    "description": "resolve/round: Attribute asked for by match challenges",
                },
                "selected_id": {
                    "description": "round: Id of the shape the player picked",
                },
                "correct": {
                    "type": "boolean",
                    "description": "score: Whether the round was answered correctly",
                },
                "response_time_ms": {
                    "type": "number",
                    "description": "score/round: Response time in milliseconds",
                },
                "streak": {
                    "type": "integer",
                    "description": "score: Current streak including this round",
                },
                "time_limit_sec": {
                    "type": "number",
                    "description": "score/round: Round time limit (default 10)",
                },
                "profile_snapshot": {
                    "type": "object",
                    "description": "score/adapt: recentAccuracy, accuracy, totalRounds, ...",
                },
                "session_summary": {
                    "type": "object",
                    "description": "record_session: sectorId, accuracy, responseTime, score, roundsPlayed, duration",
                },
                "session_stats": {
                    "type": "object",
                    "description": "reflect: trials, accuracy, avgResponseTime, peakStreak, mood, ...",
                },
                "session_id": {
                    "type": "string",
                    "description": "score/adapt/round/finish: Open session id",
                },
                "sector_id": {
                    "type": "string",
                    "description": "start: Sector being played",
                },
                "chamber_id": {
                    "type": "string",
                    "description": "start: Chamber being played",
                },
            },
            "required": ["action"],
        },
    ),
]


# ── Handler ──────────────────────────────────────────────

def _json(payload) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2, ensure_ascii=False))]


def _session(engine: CosmosEngine, arguments: dict):
    session_id = arguments.get("session_id")
    if session_id:
        return engine.get_session(session_id)
    return None


async def handle_cosmos_engine(arguments: dict) -> list[TextContent]:
    """Dispatch cosmos_engine actions."""
    action = arguments.get("action", "")
    engine = _get_engine()

    # ── resolve ──────────────────────────────────────
    if action == "resolve":
        if not arguments.get("challenge_type"):
            return [TextContent(type="text", text="Need 'challenge_type' to resolve.")]
        try:
            challenge = ChallengeType.parse(arguments["challenge_type"])
            shape = resolve_target(as_shapes(arguments.get("shapes")), challenge, arguments.get("target"))
        except (ValueError, TypeError) as e:
            return [TextContent(type="text", text=f"Error resolving target: {e}")]
        return _json({
            "challenge": challenge.value,
            "instruction": describe(challenge, arguments.get("target")),
            "target": shape.to_dict() if shape is not None else None,
        })

    # ── score ────────────────────────────────────────
    elif action == "score":
        try:
            session = _session(engine, arguments) or GameSession(engine.mind, rng=engine.rng)
            breakdown = session.score_round(
                bool(arguments.get("correct", False)),
                float(arguments.get("response_time_ms", 0) or 0),
                arguments.get("challenge_type", "largest_shape"),
                int(arguments.get("streak", 0) or 0),
                arguments.get("profile_snapshot"),
                arguments.get("time_limit_sec"),
            )
        except (ValueError, TypeError) as e:
            return [TextContent(type="text", text=f"Error scoring round: {e}")]
        return _json(breakdown.to_dict())

    # ── adapt ────────────────────────────────────────
    elif action == "adapt":
        try:
            session = _session(engine, arguments)
        except ValueError as e:
            return [TextContent(type="text", text=f"Error adapting difficulty: {e}")]
        if session is None:
            return [TextContent(type="text", text="Need 'session_id' of an open session to adapt.")]
        vector = session.adapt_difficulty(arguments.get("profile_snapshot"))
        return _json({
            "difficulty": vector.to_dict(),
            "label": session.difficulty.label(),
            "successRate": session.difficulty.recent_success_rate(),
        })

    # ── record_session ───────────────────────────────
    elif action == "record_session":
        summary = arguments.get("session_summary")
        if not isinstance(summary, dict):
            return [TextContent(type="text", text="Need 'session_summary' object to record.")]
        try:
            mind = engine.record_session(summary)
        except (ValueError, TypeError, KeyError) as e:
            return [TextContent(type="text", text=f"Error recording session: {e}")]
        return _json(mind)

    # ── reflect ──────────────────────────────────────
    elif action == "reflect":
        stats = arguments.get("session_stats")
        if not isinstance(stats, dict):
            return [TextContent(type="text", text="Need 'session_stats' object to reflect.")]
        try:
            reflection = engine.generate_session_reflection(stats)
        except (ValueError, TypeError) as e:
            return [TextContent(type="text", text=f"Error generating reflection: {e}")]
        return _json(reflection.to_dict())

    # ── profile ──────────────────────────────────────
    elif action == "profile":
        store = engine.store
        return _json({
            "playerMind": store.mind,
            "evolutionPoints": store.data["evolutionPoints"],
            "bestStreak": store.data["bestStreak"],
            "unlockedSectors": store.data["unlockedSectors"],
            "completedChambers": store.data["completedChambers"],
            "dailyStreak": store.daily_streak(),
            "totalPlayTime": store.total_play_time_formatted(),
        })

    # ── start ────────────────────────────────────────
    elif action == "start":
        session_id = engine.open_session(arguments.get("sector_id", ""), arguments.get("chamber_id", ""))
        return _json({"session_id": session_id})

    # ── round ────────────────────────────────────────
    elif action == "round":
        if not arguments.get("session_id") or not arguments.get("challenge_type"):
            return [TextContent(type="text", text="Need 'session_id' and 'challenge_type' for a round.")]
        try:
            session = engine.get_session(arguments["session_id"])
            result = session.record_round(
                arguments.get("shapes", []),
                arguments["challenge_type"],
                arguments.get("selected_id"),
                float(arguments.get("response_time_ms", 0) or 0),
                target=arguments.get("target"),
                time_limit_sec=arguments.get("time_limit_sec"),
            )
        except (ValueError, TypeError) as e:
            return [TextContent(type="text", text=f"Error recording round: {e}")]
        return _json(result.to_dict())

    # ── finish ───────────────────────────────────────
    elif action == "finish":
        if not arguments.get("session_id"):
            return [TextContent(type="text", text="Need 'session_id' to finish a session.")]
        try:
            result = engine.close_session(arguments["session_id"])
        except ValueError as e:
            return [TextContent(type="text", text=f"Error finishing session: {e}")]
        log.info(f"Session {arguments['session_id']} closed via tool")
        return _json(result)

    # ── Unknown action ───────────────────────────────
    else:
        return [TextContent(
            type="text",
            text=f"Unknown cosmos_engine action: {action}. Valid: {', '.join(GAME_ACTIONS)}",
        )]


HANDLERS = {"cosmos_engine": handle_cosmos_engine}
