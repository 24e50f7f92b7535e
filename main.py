#!/usr/bin/env python3
"""
Aurora Browser Shell - Main Entry Point

Interactive terminal front end for a BrowserSession: open addresses or
searches, manage tabs, move through history and toggle offline mode.
"""

import argparse
import asyncio

from InquirerPy import inquirer
from InquirerPy.base.control import Choice
from rich import print as rprint
from rich.table import Table

from session import BrowserSession
from shell_config import ShellConfig
from storage import JsonFileStore


def build_config(args: argparse.Namespace) -> ShellConfig:
    config = ShellConfig.debug() if args.debug else ShellConfig.default()
    config.surface.headless = args.headless
    config.offline.cache_path = args.offline_cache
    if args.proxy:
        config = config.with_proxy(args.proxy)
    return config


def show_tabs(session: BrowserSession) -> None:
    table = Table(title="Tabs")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("URL")
    table.add_column("History", justify="right")

    for index, tab in enumerate(session.tabs):
        marker = "▶ " if tab.tab_id == session.active_tab_id else ""
        title = tab.title if not tab.offline else f"[yellow]{tab.title}[/yellow]"
        table.add_row(
            f"{marker}{index + 1}",
            title,
            tab.url,
            f"{tab.history_index + 1}/{len(tab.history)}"
        )
    rprint(table)


def show_chrome(session: BrowserSession) -> None:
    chrome = session.chrome
    protocol = f"[dim]{chrome.protocol}[/dim]" if chrome.protocol else ""
    back = "◀" if chrome.can_go_back else "[dim]◀[/dim]"
    forward = "▶" if chrome.can_go_forward else "[dim]▶[/dim]"
    offline = " [yellow](offline)[/yellow]" if chrome.offline else ""
    rprint(f"{back} {forward}  {chrome.favicon} {protocol}{chrome.address_text}{offline}")
    if chrome.visible_page:
        rprint(f"[bold magenta]  [{chrome.visible_page} page][/bold magenta]")


def report(result) -> None:
    if result:
        rprint(f"[green]✅ {result.display_url}[/green]")
    elif result.error:
        rprint(f"[red]❌ {result.error}[/red]")


async def pick_tab(session: BrowserSession, message: str):
    choices = [
        Choice(value=tab.tab_id, name=f"{tab.title} - {tab.url}")
        for tab in session.tabs
    ]
    return await inquirer.select(message=message, choices=choices).execute_async()


async def run(session: BrowserSession) -> None:
    await session.init()

    while True:
        rprint()
        show_chrome(session)
        choice = await inquirer.select(
            message="What would you like to do?",
            choices=[
                Choice(value="open", name="Open address or search"),
                Choice(value="new", name="New tab"),
                Choice(value="switch", name="Switch tab"),
                Choice(value="close", name="Close tab"),
                Choice(value="back", name="Back"),
                Choice(value="forward", name="Forward"),
                Choice(value="refresh", name="Refresh"),
                Choice(value="tabs", name="List tabs"),
                Choice(value="offline", name="Toggle offline mode"),
                Choice(value="quit", name="Quit"),
            ],
            default="open"
        ).execute_async()

        if choice == "open":
            text = await inquirer.text(message="Address or search:").execute_async()
            if text:
                report(await session.navigate_from_address_bar(text))
        elif choice == "new":
            text = await inquirer.text(message="Open in new tab (blank for home):").execute_async()
            if text:
                await session.create_tab(session.resolver.expand_shorthand(text))
            else:
                await session.create_tab()
        elif choice == "switch":
            await session.activate_tab(await pick_tab(session, "Switch to"))
        elif choice == "close":
            await session.close_tab(await pick_tab(session, "Close"))
        elif choice == "back":
            report(await session.go_back())
        elif choice == "forward":
            report(await session.go_forward())
        elif choice == "refresh":
            report(await session.refresh())
        elif choice == "tabs":
            show_tabs(session)
        elif choice == "offline":
            online = not session.connectivity.online
            session.set_online(online)
            if not online and not session.offline_cache.enabled:
                session.offline_cache.enable()
            rprint(f"[bold]Network {'online' if online else 'offline'}[/bold]")
        elif choice == "quit":
            print("👋 Goodbye!\n")
            return


async def main() -> None:
    parser = argparse.ArgumentParser(description="Aurora browser shell")
    parser.add_argument("--proxy", help="Base URL of the rewriting proxy")
    parser.add_argument("--headless", action="store_true", help="Run the hosting browser headless")
    parser.add_argument("--store", default="aurora_store.json", help="File for settings and visit log")
    parser.add_argument("--offline-cache", help="File for offline pages")
    parser.add_argument("--debug", action="store_true", help="Print every shell event")
    args = parser.parse_args()

    session = BrowserSession(config=build_config(args), store=JsonFileStore(args.store))
    try:
        await run(session)
    finally:
        await session.teardown()


def cli() -> None:
    asyncio.run(main())


if __name__ == '__main__':
    cli()
