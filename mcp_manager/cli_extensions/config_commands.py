"""CLI commands for managing the configuration file."""

import argparse
import sys

from mcp_manager.config import Config, ConfigError
from mcp_manager.output import MessageType, VerbosityLevel, message


class ConfigCommands:
    """Manages configuration-related CLI commands."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add config subcommands to the argument parser.

        Args:
            subparsers: The subparsers object to add commands to
        """
        config_parser = subparsers.add_parser("config", help="Manage configuration")
        config_subparsers = config_parser.add_subparsers(dest="config_command", help="Configuration commands")

        # config init
        init_parser = config_subparsers.add_parser(
            "init",
            help="Create a configuration file from the template",
            description="Write a commented starter configuration to the config directory.",
        )
        init_parser.add_argument("--force", action="store_true", help="Overwrite an existing configuration file")

        # config show
        config_subparsers.add_parser(
            "show",
            help="Display current configuration",
            description="Display the effective configuration, including defaults for missing sections.",
        )

        # config validate
        config_subparsers.add_parser(
            "validate",
            help="Validate configuration",
            description="Validate the configuration file and report every problem found.",
        )

        # config path
        config_subparsers.add_parser(
            "path",
            help="Show configuration file location",
            description="Show the paths of the configuration file, registries directory and database.",
        )

        # config template
        config_subparsers.add_parser(
            "template",
            help="Dump a starter configuration template to stdout",
            description="Print a commented YAML template to stdout that can be redirected to a config file.",
        )

    @staticmethod
    def process_cli_command(args: argparse.Namespace, config: Config) -> None:
        """Process config CLI commands.

        Args:
            args: Parsed command-line arguments
            config: Config instance to operate on
        """
        try:
            if args.config_command is None:
                message("Usage: mcp-manager config <command>", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("Available commands:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("  init       Create a configuration file", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("  show       Display current configuration", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("  validate   Validate configuration", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("  path       Show configuration file location", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                message("  template   Dump starter template to stdout", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                return
            elif args.config_command == "init":
                config.initialize(force=getattr(args, "force", False))
            elif args.config_command == "show":
                ConfigCommands.display(config)
            elif args.config_command == "validate":
                ConfigCommands.validate(config)
            elif args.config_command == "path":
                ConfigCommands.show_location(config)
            elif args.config_command == "template":
                ConfigCommands.template()
            else:
                message("Unknown config command", MessageType.ERROR, VerbosityLevel.ALWAYS)
                sys.exit(1)
        except ConfigError as e:
            message(str(e), MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

    @staticmethod
    def display(config: Config) -> None:
        """Display the effective configuration.

        Args:
            config: Config instance
        """
        if not config.exists():
            message(
                "No configuration file found; showing defaults. Run 'mcp-manager config init' to create one.",
                MessageType.WARNING,
                VerbosityLevel.ALWAYS,
            )

        config_data = config.read()

        message("\n=== Database ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  {config.database_path(config_data)}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        registries = config_data.get("registries", [])
        message("\n=== Registries ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if registries:
            for idx, entry in enumerate(registries, 1):
                disabled = " (disabled)" if entry.get("enabled") is False else ""
                message(f"  {idx}. {entry['name']} ({entry['type']}){disabled}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
                if entry.get("url"):
                    message(f"     URL: {entry['url']}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        else:
            message("  (none)", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        cache = config_data.get("cache", {})
        message("\n=== Cache ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  max age: {cache.get('max_age_minutes')} minute(s)", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        sync = config_data.get("sync", {})
        message("\n=== Sync ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  interval:        {sync.get('interval_minutes')} minute(s)", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(
            f"  initial delay:   {sync.get('initial_delay_seconds')} second(s)",
            MessageType.NORMAL,
            VerbosityLevel.ALWAYS,
        )
        message(f"  workers:         {sync.get('workers')}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  strict identity: {sync.get('strict_identity')}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        disabled = config_data.get("agents", {}).get("disabled") or []
        message("\n=== Disabled Agents ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if disabled:
            for name in disabled:
                message(f"  - {name}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        else:
            message("  (none)", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def validate(config: Config) -> None:
        """Validate the configuration file.

        Args:
            config: Config instance
        """
        if not config.exists():
            message(
                "No configuration file found. Run 'mcp-manager config init' to create one.",
                MessageType.ERROR,
                VerbosityLevel.ALWAYS,
            )
            sys.exit(1)

        # read() validates and prints warnings
        config_data = config.read()
        count = len(config_data.get("registries", []))
        noun = "registry" if count == 1 else "registries"
        message(f"Configuration is valid ({count} {noun})", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    @staticmethod
    def template() -> None:
        """Dump a starter configuration template to stdout."""
        print(Config.generate_template())

    @staticmethod
    def show_location(config: Config) -> None:
        """Show the location of the configuration file and directories.

        Args:
            config: Config instance
        """
        message("\nConfiguration Locations:\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message(f"  Config directory:     {config.config_directory}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Config file:          {config.config_file}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Registries directory: {config.registries_directory}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message("\nStatus:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if config.config_file.exists():
            message("  Config file exists", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        else:
            message("  Config file does not exist", MessageType.WARNING, VerbosityLevel.ALWAYS)

        if config.registries_directory.exists():
            message("  Registries directory exists", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
        else:
            message("  Registries directory does not exist", MessageType.WARNING, VerbosityLevel.ALWAYS)

        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
