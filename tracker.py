#!/usr/bin/env python3
"""Screen Time Tracker - Main CLI Entry Point"""

import sys
import time
import argparse

from rich.prompt import Prompt, Confirm
from rich.live import Live

from screentime.session import session_manager, SessionState
from screentime.system_monitor import ScreenMonitor
from screentime.config import config
from screentime import ui


console = ui.console


class ScreenTimeCLI:
    """Main CLI application"""

    def __init__(self, manager=session_manager, monitor=None):
        self.running = True
        self.manager = manager
        self.monitor = monitor or ScreenMonitor(
            sink=self.manager.handle_event,
            poll_seconds=config.lock_poll_seconds,
            sleep_gap_seconds=config.sleep_gap_seconds
        )
        self.parser = self.create_parser()

    def run(self, args):
        """Parse and run one command"""
        parsed_args = self.parser.parse_args(args)

        if not hasattr(parsed_args, 'func'):
            self.show_help()
        else:
            parsed_args.func(parsed_args)

    def create_parser(self):
        """Create command parser used by the interactive shell"""
        parser = argparse.ArgumentParser(
            description='Screen Time Tracker - daily screen time with automatic pause on lock',
            prog='screentime'
        )

        subparsers = parser.add_subparsers(title='commands', dest='command')

        # Day commands
        start_parser = subparsers.add_parser('start', help='Start tracking today')
        start_parser.set_defaults(func=self.cmd_start)

        end_parser = subparsers.add_parser('end', help='End the day and show summary')
        end_parser.set_defaults(func=self.cmd_end)

        # Lap commands
        lap_parser = subparsers.add_parser('lap', help='Start a new lap')
        lap_parser.set_defaults(func=self.cmd_lap)

        stop_parser = subparsers.add_parser('stop', help='Stop the current lap')
        stop_parser.set_defaults(func=self.cmd_stop)

        # Manual pause/resume signals
        lock_parser = subparsers.add_parser('lock', help='Pause as if the screen locked')
        lock_parser.set_defaults(func=self.cmd_lock)

        unlock_parser = subparsers.add_parser('unlock', help='Resume as if the screen unlocked')
        unlock_parser.set_defaults(func=self.cmd_unlock)

        # Display commands
        status_parser = subparsers.add_parser('status', help='Show current timers')
        status_parser.set_defaults(func=self.cmd_status)

        laps_parser = subparsers.add_parser('laps', help="Show today's laps")
        laps_parser.set_defaults(func=self.cmd_laps)

        watch_parser = subparsers.add_parser('watch', help='Live timer display')
        watch_parser.set_defaults(func=self.cmd_watch)

        config_parser = subparsers.add_parser('config', help='Show configuration')
        config_parser.set_defaults(func=self.cmd_config)

        return parser

    # Command implementations

    def cmd_start(self, args):
        """Start the day"""
        try:
            day_key = self.manager.start_day()
        except ValueError as e:
            ui.print_error(str(e))
            return

        ui.print_success(f"Started tracking for {day_key}")
        self.cmd_watch(args)

    def cmd_end(self, args):
        """End the day"""
        try:
            record = self.manager.end_day()
        except ValueError as e:
            ui.print_error(str(e))
            return

        ui.display_day_summary(record)

    def cmd_lap(self, args):
        """Start a new lap"""
        try:
            self.manager.add_lap()
        except ValueError as e:
            ui.print_error(str(e))
            return

        ui.print_success("New lap started")

    def cmd_stop(self, args):
        """Stop the current lap"""
        try:
            message = self.manager.stop_lap()
        except ValueError as e:
            ui.print_error(str(e))
            return

        ui.print_success(message)

    def cmd_lock(self, args):
        """Send a pause signal"""
        ui.print_info(self.manager.handle_screen_lock())

    def cmd_unlock(self, args):
        """Send a resume signal"""
        ui.print_info(self.manager.handle_screen_unlock())

    def cmd_status(self, args):
        """Show current status"""
        status = self.manager.get_current_status()
        laps = self.manager.get_current_day_laps()
        console.print(ui.create_status_display(
            status, laps, int(time.time()), self.manager.get_discarded_count()
        ))

    def cmd_laps(self, args):
        """Show today's laps"""
        if self.manager.state is SessionState.NOT_STARTED:
            ui.print_info("No active day")
            return

        ui.display_laps(self.manager.get_current_day_laps(), int(time.time()))

    def cmd_config(self, args):
        """Show configuration"""
        console.print("[bold]Configuration:[/bold]")
        console.print(f"Minimum lap: {config.minimum_lap_seconds} seconds")
        console.print(f"Status refresh: every {config.status_refresh_seconds} seconds")
        console.print(f"Lock polling: every {config.lock_poll_seconds} seconds")
        console.print(f"Sleep gap: {config.sleep_gap_seconds} seconds")
        console.print(f"Auto pause on lock: {'on' if config.auto_pause_on_lock else 'off'}")
        console.print(f"Monitor running: {'yes' if self.monitor.is_running() else 'no'}")
        console.print(f"Timezone: {config.timezone_name()}")
        console.print(f"Log level: {config.log_level}")

    # Interactive mode and live display

    def interactive_mode(self):
        """Run the command shell"""
        console.print("[bold cyan]Screen Time Tracker[/bold cyan]")
        console.print("Type 'help' for commands, 'start' to begin the day, 'quit' to exit\n")

        while self.running:
            try:
                command = Prompt.ask("\n[bold]screentime[/bold]").strip()

                if command.lower() in ['quit', 'exit', 'q']:
                    self.quit()
                    break

                if command.lower() in ['help', 'h', '?']:
                    self.show_help()
                    continue

                if command:
                    self.run(command.split())

            except SystemExit:
                # argparse already printed the usage error
                continue
            except KeyboardInterrupt:
                console.print("\n")
                if Confirm.ask("Exit?", default=False):
                    self.quit()
            except Exception as e:
                ui.print_error(f"Error: {e}")

    def cmd_watch(self, args):
        """Display live timers until interrupted"""
        try:
            with Live(console=console, refresh_per_second=1, transient=False) as live:
                while self.manager.state is not SessionState.NOT_STARTED:
                    status = self.manager.get_current_status()
                    laps = self.manager.get_current_day_laps()
                    live.update(ui.create_status_display(
                        status, laps, int(time.time()), self.manager.get_discarded_count()
                    ))
                    time.sleep(config.status_refresh_seconds)

        except KeyboardInterrupt:
            self.session_menu()

    def session_menu(self):
        """Menu shown when the live display is interrupted"""
        console.print("\n")
        console.print("[bold]Session Menu:[/bold]")
        console.print("  [cyan]l[/cyan] - Start new lap")
        console.print("  [cyan]s[/cyan] - Stop current lap")
        console.print("  [cyan]e[/cyan] - End day")
        console.print("  [cyan]c[/cyan] - Continue (go back to timer)")
        console.print("  [cyan]b[/cyan] - Back to command prompt")

        choice = Prompt.ask("Select", choices=['l', 's', 'e', 'c', 'b'], default='c').lower()

        if choice == 'l':
            self.cmd_lap(argparse.Namespace())
            self.cmd_watch(argparse.Namespace())
        elif choice == 's':
            self.cmd_stop(argparse.Namespace())
            self.cmd_watch(argparse.Namespace())
        elif choice == 'e':
            self.cmd_end(argparse.Namespace())
        elif choice == 'c':
            self.cmd_watch(argparse.Namespace())

    def quit(self):
        """End a live day, stop monitoring and leave the shell"""
        self.running = False
        if self.manager.state is not SessionState.NOT_STARTED:
            self.cmd_end(argparse.Namespace())
        self.monitor.stop()

    def show_help(self):
        """Show help message"""
        console.print("""
[bold]Day:[/bold]
  start              Start tracking today (first lap starts immediately)
  end                End the day and show the summary

[bold]Laps:[/bold]
  lap                Start a new lap (closes the running one)
  stop               Stop the running lap
  lock               Pause, as if the screen locked
  unlock             Resume, as if the screen unlocked

[bold]Display:[/bold]
  status             Show current timers
  laps               Show today's laps
  watch              Live timer display (Ctrl+C for menu)

[bold]Other:[/bold]
  config             Show current configuration
  help               Show this help
  quit               End the day and exit
        """)


def create_launch_parser():
    """Options accepted on the command line when launching"""
    parser = argparse.ArgumentParser(
        description='Screen Time Tracker - daily screen time with automatic pause on lock',
        prog='screentime'
    )
    parser.add_argument('--no-monitor', action='store_true', help='Do not watch for screen lock/sleep')
    parser.add_argument('--start', action='store_true', help='Start tracking the day immediately')
    return parser


def main():
    """Main entry point"""
    args = create_launch_parser().parse_args(sys.argv[1:])
    ui.configure_logging(config.log_level)

    cli = ScreenTimeCLI()
    try:
        if config.auto_pause_on_lock and not args.no_monitor:
            cli.monitor.start()
        else:
            ui.print_warning("Screen lock monitor is off; laps will not pause automatically")

        if args.start:
            cli.cmd_start(argparse.Namespace())

        cli.interactive_mode()
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")
        cli.quit()
        sys.exit(0)
    except Exception as e:
        ui.print_error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
