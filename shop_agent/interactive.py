#!/usr/bin/env python3
"""
Shop Agent Interactive CLI

A command-line chat with the Gemini Shop customer-service agent.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from .agent import ShopAgent
from .config import config
from .errors import ProviderTransportError
from .providers import ProviderKind

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = """
╔════════════════════════════════════════════════════════════════╗
║                    Gemini Shop 智能客服                         ║
║                                                                 ║
║  Products, order status and store policies                      ║
╚════════════════════════════════════════════════════════════════╝

Available commands:
  /help               - Show this help message
  /provider [name]    - Show or switch provider (deepseek, gemini)
  /policies           - List the current store policies
  /trace              - Show what happened during the last turn
  /clear              - Start a new conversation
  /quit               - Exit the CLI

Type your questions below.
"""
    print(banner)


def print_policies(agent: ShopAgent) -> None:
    """Print the policy set the agent is using."""
    print("\nStore Policies:")
    print("─" * 64)
    for policy in agent.snapshot.policies:
        print(f"  [{policy.topic}] {policy.content}")
    print()


def print_trace(agent: ShopAgent) -> None:
    """Print a summary of the last turn."""
    trace = agent.last_turn
    if trace is None:
        print("\nNo trace available. Send a message first.\n")
        return

    print("\n" + "═" * 70)
    print(f"TURN {trace.execution_id}")
    print("═" * 70)
    print(f"  State: {trace.state.value}")
    print(f"  Dispatches: {trace.dispatches}/{agent.max_loops}")
    print(f"  Tools used: {', '.join(trace.tools_used) or '(none)'}")
    if trace.budget_exhausted:
        print("  Dispatch budget exhausted")
    print()


class InteractiveCLI:
    """Interactive CLI for Shop Agent."""

    def __init__(self, provider: Optional[str] = None, api_key: Optional[str] = None):
        self.api_key = api_key
        self.agent = ShopAgent(credential=api_key, provider=provider)
        self.key_provider = self.agent.provider

    def _credential_for(self, kind: ProviderKind) -> Optional[str]:
        # --api-key belongs to the provider it was given for
        return self.api_key if kind is self.key_provider else None

    async def switch_provider(self, name: str) -> None:
        """Rebuild the agent for another provider, keeping the current policies."""
        try:
            kind = ProviderKind(name.lower())
        except ValueError:
            print(f"\nUnknown provider: {name}. Choose from: "
                  f"{', '.join(k.value for k in ProviderKind)}\n")
            return

        store = self.agent.snapshot
        await self.agent.close()
        self.agent = ShopAgent(credential=self._credential_for(kind), provider=kind, store=store)
        print(f"\nProvider: {kind.display_name} (new conversation)\n")

    async def clear_history(self) -> None:
        """Start a new conversation with the same provider and store."""
        await self.agent.close()
        kind = self.agent.provider
        self.agent = ShopAgent(
            credential=self._credential_for(kind), provider=kind, store=self.agent.snapshot
        )
        print("\nConversation history cleared.\n")

    async def process_query(self, query: str) -> None:
        """Send one message and print the reply."""
        print()
        try:
            reply = await self.agent.handle_turn(
                query, on_status=lambda status: print(f"  ⋯ {status}")
            )
        except ProviderTransportError as e:
            print(f"\n抱歉，遇到了一些错误：{e}\n")
            return

        print("\n" + "═" * 70)
        print(reply)
        print("═" * 70 + "\n")

    async def handle_command(self, user_input: str) -> bool:
        """Run a slash command.

        Returns:
            False if the CLI should exit
        """
        command, _, argument = user_input.partition(" ")
        command = command.lower()
        argument = argument.strip()

        if command in ("/quit", "/exit", "/q"):
            print("\nGoodbye!\n")
            return False
        elif command in ("/help", "/h", "/?"):
            print_banner()
        elif command == "/provider":
            if argument:
                await self.switch_provider(argument)
            else:
                print(f"\nProvider: {self.agent.provider.display_name}\n")
        elif command == "/policies":
            print_policies(self.agent)
        elif command == "/trace":
            print_trace(self.agent)
        elif command == "/clear":
            await self.clear_history()
        else:
            print(f"\nUnknown command: {user_input}")
            print("Type /help for available commands.\n")
        return True

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()
        if not self.agent.has_credential:
            print(f"Warning: {self.agent.missing_credential_message}\n")

        loop = asyncio.get_running_loop()
        try:
            while True:
                try:
                    user_input = (await loop.run_in_executor(None, input, ">>> ")).strip()
                except EOFError:
                    print("\nGoodbye!\n")
                    break

                if not user_input:
                    continue

                if user_input.startswith("/"):
                    if not await self.handle_command(user_input):
                        break
                else:
                    await self.process_query(user_input)
        finally:
            await self.agent.close()


async def run_single_query(
    query: str,
    provider: Optional[str],
    api_key: Optional[str],
    as_json: bool,
) -> int:
    """Answer one message and exit."""
    agent = ShopAgent(credential=api_key, provider=provider)
    statuses: list[str] = []
    try:
        reply = await agent.handle_turn(query, on_status=statuses.append)
    except ProviderTransportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await agent.close()

    if as_json:
        trace = agent.last_turn
        output = {
            "query": query,
            "provider": agent.provider.value,
            "answer": reply,
            "statuses": statuses,
            "dispatches": trace.dispatches,
            "tools_used": trace.tools_used,
            "budget_exhausted": trace.budget_exhausted,
        }
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(reply)
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Shop Agent Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Start interactive mode
  %(prog)s --provider gemini            # Talk to Gemini instead of DeepSeek
  %(prog)s -q "ORD-1001 到哪了？"        # Run a single query
""",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "-q",
        "--query",
        type=str,
        help="Run a single query and exit",
    )

    parser.add_argument(
        "--provider",
        choices=[k.value for k in ProviderKind],
        default=None,
        help=f"Model backend (default: from SHOP_AGENT_PROVIDER env or {config.provider.default})",
    )

    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="API key (default: provider env var, then API_KEY)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON (for scripting)",
    )

    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        if args.query:
            sys.exit(
                asyncio.run(run_single_query(args.query, args.provider, args.api_key, args.json))
            )
        else:
            cli = InteractiveCLI(provider=args.provider, api_key=args.api_key)
            asyncio.run(cli.run())
    except KeyboardInterrupt:
        print("\n\nInterrupted.\n")
        sys.exit(130)


if __name__ == "__main__":
    main()
