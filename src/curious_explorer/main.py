"""
Curious Explorer - Main Entry Point

Usage:
    # Interactive explorer
    python -m curious_explorer.main

    # One-shot text exploration
    python -m curious_explorer.main --query "Mechanical Watch"

    # One-shot exploration from a photo
    python -m curious_explorer.main --image ~/Pictures/kettle.jpg

    # Fast mode (exploded view only), saving the rendered views
    python -m curious_explorer.main --query "Drone" --mode fast --save-images out/

Pending saves are flushed before exit, including on Ctrl+C.
"""
import sys
import asyncio
import argparse
from pathlib import Path
from typing import Optional

from curious_explorer.explorer.session import ExplorerSession, end_session, get_session
from curious_explorer.explorer.state import ExploredItem
from curious_explorer.explorer.tree import iter_items, names_match, search_collection
from curious_explorer.tools.images import save_data_url


BANNER = """
╔══════════════════════════════════════════════════════════════╗
║           CURIOUS EXPLORER                                   ║
║                                                              ║
║   Name an object and I'll take it apart.                     ║
║   Pick a part to go one level deeper.                        ║
║                                                              ║
║   Type 'help' for commands, Ctrl+C to quit.                  ║
╚══════════════════════════════════════════════════════════════╝
"""

HELP = """
Commands:
  explore <name>     Start a new exploration
  into <part>        Explore a part of the current item (name or number)
  go <id>            Jump to an item in the current exploration
  tree               Show the current exploration tree
  list [filter]      List saved explorations
  load <id>          Open a saved exploration
  delete <id>        Delete a saved exploration
  mode <fast|full>   Switch generation mode
  reset              Close the current exploration
  export [dir]       Write a JSON backup of all explorations
  import <file>      Merge a JSON backup into the collection
  quit               Exit
"""


# ─────────────────────────────────────────────────────────────
# Output
# ─────────────────────────────────────────────────────────────

def short_id(item_id: str) -> str:
    return item_id[:8]


def print_item(item: ExploredItem, history: list[ExploredItem]) -> None:
    print("\n" + "=" * 60)
    print(" › ".join(entry["name"] for entry in history))
    print("=" * 60)
    print(f"\n{item['name']}  [{item['category']}]  depth {item['depth']}  id {short_id(item['id'])}")
    print(f"\n{item['description']}")

    if item.get("characteristics"):
        print("\nSpecs:")
        for spec in item["characteristics"]:
            print(f"  • {spec['label']}: {spec['value']}")

    if item.get("facts"):
        print("\nFacts:")
        for fact in item["facts"]:
            print(f"  • {fact}")

    children = item.get("children", [])
    print("\nParts:")
    for index, part in enumerate(item.get("parts", []), start=1):
        marker = "✓" if any(names_match(child["name"], part["name"]) for child in children) else " "
        print(f"  {marker} {index:2}. {part['name']}  ({part['x']:.0f}, {part['y']:.0f})")

    images = item.get("images") or {}
    views = ", ".join(sorted(images)) if images else "none"
    print(f"\nViews: {views}")


def print_tree(item: ExploredItem, current_id: Optional[str], indent: int = 0) -> None:
    marker = "▶" if item["id"] == current_id else "•"
    print(f"{'  ' * indent}{marker} {item['name']}  ({short_id(item['id'])})")
    for child in item.get("children", []):
        print_tree(child, current_id, indent + 1)


def print_collection(items: list[ExploredItem]) -> None:
    if not items:
        print("No saved explorations.")
        return
    for item in items:
        count = sum(1 for _ in iter_items(item))
        print(f"  {short_id(item['id'])}  {item['name']}  ({count} items)")


def save_images(item: ExploredItem, output_dir: str) -> None:
    images = item.get("images") or {}
    if not images:
        print("   ⚠️  No views to save")
        return
    slug = item["name"].lower().replace(" ", "_")
    for view, data_url in images.items():
        path = save_data_url(data_url, str(Path(output_dir) / f"{slug}_{view}.png"))
        if path:
            print(f"   🖼️  Saved {view}: {path}")


# ─────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────

def resolve_id(prefix: str, candidates: list[ExploredItem]) -> Optional[str]:
    """Match a full id or a short id prefix."""
    if not prefix:
        return None
    for item in candidates:
        if item["id"] == prefix or item["id"].startswith(prefix):
            return item["id"]
    return None


def resolve_part(item: ExploredItem, arg: str) -> Optional[str]:
    parts = item.get("parts", [])
    if arg.isdigit():
        index = int(arg) - 1
        return parts[index]["name"] if 0 <= index < len(parts) else None
    for part in parts:
        if part["name"].lower() == arg.lower():
            return part["name"]
    return arg


def report_result(session: ExplorerSession, item: Optional[ExploredItem], output_dir: Optional[str]) -> None:
    if item is None:
        if session.status.get("stage") == "error":
            print(f"\n❌ {session.status.get('message')}")
        return
    print_item(item, session.history)
    if output_dir:
        save_images(item, output_dir)


async def handle_command(session: ExplorerSession, line: str, output_dir: Optional[str]) -> bool:
    """Run one interactive command. Returns False to quit."""
    command, _, arg = line.strip().partition(" ")
    command = command.lower()
    arg = arg.strip()

    if command in ("quit", "exit", "q"):
        return False

    if command == "help":
        print(HELP)

    elif command == "explore":
        if not arg:
            print("Usage: explore <name>")
        else:
            report_result(session, await session.explore(arg), output_dir)

    elif command == "into":
        current = session.current_item
        if current is None:
            print("Nothing open. Use 'explore <name>' first.")
        elif not arg:
            print("Usage: into <part name or number>")
        else:
            part = resolve_part(current, arg)
            if part is None:
                print(f"No part #{arg}")
            else:
                report_result(session, await session.explore(part, parent_id=current["id"]), output_dir)

    elif command == "go":
        root = session.history[0] if session.history else None
        target = resolve_id(arg, list(iter_items(root))) if root else None
        if target is None:
            print(f"No item '{arg}' in the current exploration")
        else:
            print_item(session.navigate_to(target), session.history)

    elif command == "tree":
        if not session.history:
            print("Nothing open.")
        else:
            print_tree(session.history[0], session.current_item["id"])

    elif command == "list":
        print_collection(search_collection(session.collection, arg))

    elif command == "load":
        target = resolve_id(arg, session.collection)
        if target is None:
            print(f"No saved exploration '{arg}'")
        else:
            item = session.open_item(target)
            print_item(item, session.history)

    elif command == "delete":
        target = resolve_id(arg, session.collection)
        if target is None:
            print(f"No saved exploration '{arg}'")
        elif await session.remove_exploration(target):
            print(f"🗑️  Deleted {short_id(target)}")
        else:
            print("❌ Failed to delete item from database.")

    elif command == "mode":
        try:
            session.set_generation_mode(arg)
            print(f"Generation mode: {arg}")
        except ValueError as e:
            print(f"❌ {e}")

    elif command == "reset":
        session.reset()
        print("Exploration closed.")

    elif command == "export":
        await session.export_to_file(arg or None)

    elif command == "import":
        from curious_explorer.errors import ExplorationError
        if not arg:
            print("Usage: import <file>")
        else:
            try:
                await session.import_from_file(arg)
            except FileNotFoundError:
                print(f"❌ File not found: {arg}")
            except ExplorationError as e:
                print(f"❌ {e.message}")

    elif command:
        print(f"Unknown command '{command}'. Type 'help'.")

    return True


async def run_interactive(session: ExplorerSession, output_dir: Optional[str]) -> None:
    print(BANNER)
    await session.initialize()
    if session.state["isOffline"]:
        print("📴 No GEMINI_API_KEY set. Browsing saved explorations only.")

    while True:
        try:
            line = await asyncio.to_thread(input, "\n> ")
        except EOFError:
            break
        if not await handle_command(session, line, output_dir):
            break


async def run_once(session: ExplorerSession, args: argparse.Namespace) -> int:
    from PIL import UnidentifiedImageError

    await session.initialize()
    try:
        if args.image:
            item = await session.explore_from_file(args.image)
        else:
            item = await session.explore(args.query)
    except FileNotFoundError:
        print(f"❌ Image not found: {args.image}")
        return 1
    except UnidentifiedImageError:
        print(f"❌ Not a readable image: {args.image}")
        return 1
    except ValueError as e:
        print(f"❌ {e}")
        return 1
    report_result(session, item, args.save_images)
    return 0 if item is not None else 1


async def run(args: argparse.Namespace) -> int:
    session = get_session()
    if session.ai is not None and not getattr(session.ai, "is_configured", True):
        session.configure_access(None)
    if args.mode:
        session.set_generation_mode(args.mode)

    try:
        if args.query or args.image:
            return await run_once(session, args)
        await run_interactive(session, args.save_images)
        return 0
    finally:
        await session.wait_for_pending_writes()


# ─────────────────────────────────────────────────────────────
# Main Entry Point
# ─────────────────────────────────────────────────────────────

def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Curious Explorer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive explorer
  python -m curious_explorer.main

  # Explore one object and exit
  python -m curious_explorer.main --query "Espresso Machine"

  # Identify and explore a photo
  python -m curious_explorer.main --image kettle.jpg --save-images renders/
        """
    )

    parser.add_argument(
        "--query",
        help="Explore this object and exit"
    )

    parser.add_argument(
        "--image",
        help="Identify the object in this photo, explore it and exit"
    )

    parser.add_argument(
        "--mode",
        choices=["fast", "full"],
        help="Generation mode (default: DEFAULT_GENERATION_MODE or full)"
    )

    parser.add_argument(
        "--save-images",
        metavar="DIR",
        help="Write each explored item's views as PNG files to DIR"
    )

    args = parser.parse_args()

    if args.query and args.image:
        parser.error("--query and --image are mutually exclusive")

    try:
        code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
        code = 0
    finally:
        end_session()

    sys.exit(code)


if __name__ == "__main__":
    main()
