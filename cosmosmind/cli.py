"""
CosmosMind CLI
==============
Command-line interface for the engine and the player save.

Usage:
    cosmosmind serve                 Start MCP server (default)
    cosmosmind profile               Player mind summary
    cosmosmind record <json>         Record a finished session summary
    cosmosmind reflect <json>        Reflection for session stats
    cosmosmind history [n]           Recent sessions
    cosmosmind sectors               Sector map and progress
    cosmosmind export [path]         Dump the save as JSON
    cosmosmind import <path>         Replace the save from a JSON file
    cosmosmind reset --yes           Wipe the save
"""

import sys
import json
from pathlib import Path


def main():
    args = sys.argv[1:]
    if not args:
        cmd_serve()
        return

    cmd = args[0].lower()
    rest = args[1:]

    commands = {
        "serve": cmd_serve,
        "profile": cmd_profile,
        "record": cmd_record,
        "reflect": cmd_reflect,
        "history": cmd_history,
        "sectors": cmd_sectors,
        "export": cmd_export,
        "import": cmd_import,
        "reset": cmd_reset,
        "version": cmd_version,
        "--version": cmd_version,
        "help": cmd_help,
        "--help": cmd_help,
        "-h": cmd_help,
    }

    handler = commands.get(cmd)
    if handler:
        handler(rest)
    else:
        print(f"Unknown command: {cmd}")
        cmd_help([])


def _engine():
    from cosmosmind.engine import CosmosEngine
    from cosmosmind.log import setup
    setup()
    return CosmosEngine()


def _json_arg(args, usage):
    if not args:
        print(usage)
        sys.exit(1)
    try:
        data = json.loads(" ".join(args))
    except json.JSONDecodeError as e:
        print(f"Invalid JSON: {e}")
        sys.exit(1)
    if not isinstance(data, dict):
        print("Expected a JSON object.")
        sys.exit(1)
    return data


def cmd_serve(args=None):
    """Start the MCP server (default behavior)."""
    from cosmosmind.server import run
    run()


def cmd_profile(args=None):
    """Show the player mind."""
    engine = _engine()
    store = engine.store
    mind = store.mind
    print(f"Sessions: {mind['totalSessions']}")
    print(f"Trials: {mind['totalTrials']}")
    print(f"Lifetime accuracy: {mind['lifetimeAccuracy'] * 100:.1f}%")
    print(f"Evolution stage: {mind['evolutionStage']}")
    print(f"Evolution points: {store.data['evolutionPoints']}")
    print(f"Best streak: {store.data['bestStreak']}")
    print(f"Mood: {mind['currentMood']}")
    print(f"Reaction: mean {mind['reactionProfile']['mean']:.0f}ms, trend {mind['reactionProfile']['trend']}")
    print("Skills:")
    for skill, value in mind["cognitiveVector"].items():
        print(f"  {skill:<20} {value:5.1f}")
    print(f"Play time: {store.total_play_time_formatted()}")
    print(f"Save: {store.path}")


def cmd_record(args=None):
    """Record a session summary given as JSON."""
    summary = _json_arg(args, "Usage: cosmosmind record '{\"accuracy\": 0.8, \"roundsPlayed\": 10, ...}'")
    engine = _engine()
    mind = engine.record_session(summary)
    engine.store.save()
    print(f"Recorded. Sessions: {mind['totalSessions']}, "
          f"lifetime accuracy: {mind['lifetimeAccuracy'] * 100:.1f}%, "
          f"stage: {mind['evolutionStage']}")


def cmd_reflect(args=None):
    """Print a reflection for session stats given as JSON."""
    stats = _json_arg(args, "Usage: cosmosmind reflect '{\"trials\": 10, \"accuracy\": 0.9, ...}'")
    engine = _engine()
    reflection = engine.generate_session_reflection(stats)
    engine.store.save()
    print(reflection.headline)
    print(reflection.subheadline)
    for insight in reflection.insights:
        line = f"  * {insight.message}"
        if insight.subtext:
            line += f" ({insight.subtext})"
        print(line)
    m = reflection.highlighted_metric
    print(f"{m.label}: {m.value} ({m.context})")
    print(reflection.suggestion)


def cmd_history(args=None):
    """Show recent sessions."""
    limit = 10
    if args:
        try:
            limit = int(args[0])
        except ValueError:
            print(f"Not a number: {args[0]}")
            return
    store = _engine().store
    history = store.session_history(limit)
    if not history:
        print("No sessions yet.")
        return
    for s in history:
        print(f"{s['id']}  {s['sectorId'] or '-':<14} acc {s['accuracy'] * 100:5.1f}%  "
              f"rt {s['responseTime']:6.0f}ms  score {s['score']:>6}  rounds {s['roundsPlayed']}")
    print(f"Accuracy trend: {store.recent_accuracy_trend(limit)}")


def cmd_sectors(args=None):
    """Show the sector map with unlock state and progress."""
    from cosmosmind.universe import SECTORS, next_chamber, sector_progress
    store = _engine().store
    done = store.data["completedChambers"]
    for sector in SECTORS:
        state = "open" if store.is_sector_unlocked(sector.id) else "locked"
        progress = sector_progress(sector.id, done)
        nxt = next_chamber(sector.id, done)
        print(f"{sector.name:<15} {state:<7} {progress * 100:5.1f}%  "
              f"next: {nxt.id if nxt else '-':<6} ({sector.unlock.description})")


def cmd_export(args=None):
    """Export the save as JSON, to stdout or a file."""
    text = _engine().store.export_json()
    if args:
        Path(args[0]).write_text(text, encoding="utf-8")
        print(f"Exported to {args[0]}")
    else:
        print(text)


def cmd_import(args=None):
    """Replace the save with a JSON export."""
    if not args:
        print("Usage: cosmosmind import <path>")
        sys.exit(1)
    try:
        text = Path(args[0]).read_text(encoding="utf-8")
    except OSError as e:
        print(f"Cannot read {args[0]}: {e}")
        sys.exit(1)
    if _engine().store.import_json(text):
        print(f"Imported from {args[0]}")
    else:
        print("Import failed: not a valid save file.")
        sys.exit(1)


def cmd_reset(args=None):
    """Wipe all progress."""
    if "--yes" not in (args or []):
        print("This erases all progress. Run 'cosmosmind reset --yes' to confirm.")
        return
    _engine().store.reset()
    print("Save reset.")


def cmd_version(args=None):
    from cosmosmind.config import SERVER_VERSION
    print(f"CosmosMind v{SERVER_VERSION}")


def cmd_help(args=None):
    print("""
CosmosMind: cognitive adaptation and scoring engine.

Server:
  cosmosmind serve              Start MCP server (default if no command given)

Player:
  cosmosmind profile            Player mind summary
  cosmosmind history [n]        Recent sessions (default 10)
  cosmosmind sectors            Sector map and progress
  cosmosmind record <json>      Record a finished session summary
  cosmosmind reflect <json>     Reflection for session stats

Data:
  cosmosmind export [path]      Dump save as JSON
  cosmosmind import <path>      Replace save from JSON
  cosmosmind reset --yes        Wipe the save

  cosmosmind version            Show version
  cosmosmind help               This message
""")


if __name__ == "__main__":
    main()
