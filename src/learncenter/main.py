"""CLI entrypoint for the learning center demo."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from .modal import BACKDROP_ID, ModalController
from .page import Page
from .render import PageRenderer, build_page
from .selftest import SelfTestHarness, format_report
from .service import CourseCard, LearnService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
DEFAULT_DB_PATH = Path(".learncenter") / "state.db"
DEFAULT_OUT_PATH = Path("learncenter.html")
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
MENU_BACK_COMMANDS = {"b"}


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(db_path: Path | str) -> LearnService:
    """Create app service backed by the local state database."""
    return LearnService(db_path=db_path)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="learncenter", description="Learning center demo")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "render"])
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH, help="state database path")
    parser.add_argument("--out", type=Path, default=DEFAULT_OUT_PATH, help="HTML output path for render")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command == "render":
        return render_page(args.db, args.out)
    return play_shell(db_path=args.db)


def render_page(db_path: Path | str, out_path: Path, print_fn: PrintFn = print) -> int:
    """Render the page to a file and print the self-test report."""
    service = _service(db_path)
    try:
        harness = SelfTestHarness()
        html = PageRenderer(service, harness).render()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(html, encoding="utf-8")
        print_fn(f"Wrote {out_path}")
        if harness.results is not None:
            print_fn(format_report(harness.results))
        return 0
    finally:
        service.close()


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print, db_path: Path | str = DEFAULT_DB_PATH) -> int:
    """Run persistent menu-driven shell."""
    service = _service(db_path)
    page = build_page(service)
    try:
        with ModalController(page) as modal:
            while True:
                user = service.user
                print_fn("\n=== Learning Center ===")
                if not user.logged_in:
                    print_fn("The demo has no sign-up or checkout.")
                    print_fn("l) Demo login")
                    print_fn("g) Guide")
                    print_fn("q) Quit")
                    choice = input_fn("Choose: ").strip().lower()
                    if choice == "l":
                        service.demo_login()
                    elif choice == "g":
                        _guide_flow(modal, page, input_fn, print_fn)
                    elif choice in MENU_QUIT_COMMANDS:
                        return 0
                    else:
                        print_fn("Invalid choice.")
                    continue

                print_fn(f"Welcome, {user.name}.")
                cards = service.course_cards()
                if cards:
                    for idx, card in enumerate(cards, start=1):
                        print_fn(f"{idx}) {card.course.title}  {card.percent}%  next: {card.next_lesson.title}")
                else:
                    print_fn("No purchased courses.")
                print_fn("r) Resume")
                print_fn("g) Guide")
                print_fn("o) Log out")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice.isdigit():
                    index = int(choice) - 1
                    if 0 <= index < len(cards):
                        _course_flow(service, cards[index], input_fn, print_fn)
                    else:
                        print_fn("Invalid choice.")
                elif choice == "r":
                    _resume_flow(service, input_fn, print_fn)
                elif choice == "g":
                    _guide_flow(modal, page, input_fn, print_fn)
                elif choice == "o":
                    service.logout()
                    print_fn("Logged out.")
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
    except QuitApp:
        return 0
    finally:
        service.close()


def _course_flow(service: LearnService, card: CourseCard, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show one course and act on its lessons."""
    course = card.course
    while True:
        current = next(item for item in service.course_cards() if item.course.key == course.key)
        print_fn(f"\n=== {course.title} ===")
        print_fn(course.tagline)
        print_fn(f"Progress: {current.percent}%")
        for idx, status in enumerate(current.lessons, start=1):
            mark = "x" if status.completed else " "
            print_fn(f"{idx}) [{mark}] {status.lesson.title} ({status.lesson.duration})")
        print_fn(f"c) Continue: {current.next_lesson.title}")
        print_fn("m) Mark current lesson complete")
        print_fn("j) Jump to lesson")
        print_fn("b) Back")
        choice = input_fn("Choose: ").strip().lower()

        if choice in FLOW_EXIT_COMMANDS:
            raise QuitApp
        if choice in MENU_BACK_COMMANDS:
            return
        if choice == "c":
            service.jump_to(course, current.next_lesson)
            print_fn(f"Now studying: {current.next_lesson.title}")
        elif choice == "m":
            service.mark_complete(course, current.next_lesson)
            print_fn(f"Completed: {current.next_lesson.title}")
            if _is_finished(service, course.key):
                print_fn("Course complete.")
        elif choice == "j":
            raw = input_fn("Lesson number: ").strip()
            if raw.isdigit() and 1 <= int(raw) <= len(course.lessons):
                lesson = course.lessons[int(raw) - 1]
                service.jump_to(course, lesson)
                print_fn(f"Now studying: {lesson.title}")
            else:
                print_fn("Invalid lesson.")
        else:
            print_fn("Invalid choice.")


def _is_finished(service: LearnService, course_key: str) -> bool:
    return any(card.finished for card in service.course_cards() if card.course.key == course_key)


def _resume_flow(service: LearnService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick up a bookmarked lesson."""
    recent = service.recent_lessons()
    if not recent:
        print_fn("Nothing to resume yet.")
        return
    print_fn("\nRecent")
    for idx, item in enumerate(recent, start=1):
        print_fn(f"{idx}) {item.course.title} - {item.lesson.title}")
    print_fn("b) Back")
    choice = input_fn("Resume: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice.isdigit() and 1 <= int(choice) <= len(recent):
        item = recent[int(choice) - 1]
        service.jump_to(item.course, item.lesson)
        print_fn(f"Now studying: {item.lesson.title}")
        return
    print_fn("Invalid choice.")


def _guide_flow(modal: ModalController, page: Page, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show the coming-soon dialog until one of its close paths fires."""
    page.focus(page.get_element_by_id("open-guide"))
    modal.open()
    while modal.is_open:
        print_fn("\n--- The learning center is coming soon ---")
        print_fn("Course outlines and replays are being set up.")
        print_fn("t) View tracks")
        print_fn("a) Got it")
        print_fn("x) Close")
        print_fn("esc) Press Escape")
        print_fn("k) Click outside the dialog")
        choice = input_fn("Choose: ").strip().lower()
        if choice == "t":
            modal.navigate_and_close("tracks")
        elif choice in {"a", "x"}:
            modal.close()
        elif choice == "esc":
            page.dispatch_key("Escape")
        elif choice == "k":
            modal.click(page.get_element_by_id(BACKDROP_ID))
        elif choice in FLOW_EXIT_COMMANDS:
            modal.close()
            raise QuitApp
        else:
            print_fn("Invalid choice.")

    page.run_animation_frames()
    for record in page.scroll_log:
        print_fn(f"Scrolled to #{record.element_id}")
    page.scroll_log.clear()
    if page.active_element is not None:
        print_fn(f"Focus: {page.active_element.id}")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
