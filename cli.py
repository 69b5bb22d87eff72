#!/usr/bin/env python3
"""
code-planner CLI
Turns a natural-language coding task into a trackable, step-by-step project plan.
"""

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from colorama import init, Fore, Style
from dotenv import load_dotenv

from code_planner.config import API_KEY_ENV, ConfigManager, MissingApiKeyError, resolve_api_key
from code_planner.generator import PlanGenerator
from code_planner.llm import LLM
from code_planner.models import CreatePlanOptions, ProjectPlan
from code_planner.progress import ProgressEngine, StepNotFoundError
from code_planner.store import PlanStore

load_dotenv()
init()  # Initialize colorama for Windows

STATUSES = ["planning", "in-progress", "completed", "paused"]

def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1"""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return n

class CLIColors:
    """Color utilities for CLI output"""

    @staticmethod
    def success(text: str) -> str:
        return f"{Fore.GREEN}{text}{Style.RESET_ALL}"

    @staticmethod
    def error(text: str) -> str:
        return f"{Fore.RED}{text}{Style.RESET_ALL}"

    @staticmethod
    def warning(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}"

    @staticmethod
    def info(text: str) -> str:
        return f"{Fore.CYAN}{text}{Style.RESET_ALL}"

    @staticmethod
    def dim(text: str) -> str:
        return f"{Style.DIM}{text}{Style.RESET_ALL}"

    @staticmethod
    def highlight(text: str) -> str:
        return f"{Fore.MAGENTA}{Style.BRIGHT}{text}{Style.RESET_ALL}"

def progress_bar(percentage: int, length: int = 30) -> str:
    filled = round(percentage / 100 * length)
    return f"{Fore.GREEN}{'█' * filled}{Style.RESET_ALL}{Style.DIM}{'░' * (length - filled)}{Style.RESET_ALL}"

def status_badge(status: str) -> str:
    color = {
        "completed": Fore.GREEN,
        "in-progress": Fore.BLUE,
        "planning": Fore.YELLOW,
        "paused": Fore.RED,
    }.get(status, Fore.WHITE)
    return f"{color}{Style.BRIGHT}{status.upper()}{Style.RESET_ALL}"

def complexity_badge(complexity: str) -> str:
    color = {"low": Fore.GREEN, "medium": Fore.YELLOW, "high": Fore.RED}.get(complexity, Fore.WHITE)
    return f"{color}{complexity.upper()}{Style.RESET_ALL}"

class PlannerCLI:
    """Main CLI class for code-planner"""

    def __init__(self, home: Optional[str] = None):
        self.store = PlanStore(Path(home) if home else None)
        self.config_manager = ConfigManager(self.store)
        self.progress_engine = ProgressEngine(self.store)

    def _build_llm(self) -> Optional[LLM]:
        """Return an LLM client, or None (with a hint) when no API key is configured"""
        try:
            api_key = self.config_manager.ensure_api_key()
        except MissingApiKeyError as e:
            print(CLIColors.warning(f"⚠️  {e}"))
            print(CLIColors.dim("Get your free API key from: https://aistudio.google.com/app/apikey"))
            print(CLIColors.dim(f'Set it with: export {API_KEY_ENV}="your-key-here"'))
            print(CLIColors.dim("Or run: code-planner config --set-api-key"))
            return None
        config = self.config_manager.load_config()
        return LLM(api_key=api_key, base_url=config.gemini_base_url, model=config.gemini_model)

    def _choose(self, prompt: str, choices: list[str]) -> Optional[int]:
        """Numbered picker on stdin; returns the 0-based index or None"""
        for i, label in enumerate(choices, 1):
            print(f"   {i}. {label}")
        raw = input(CLIColors.info(f"{prompt} [1-{len(choices)}]: ")).strip()
        if not raw.isdigit() or not 1 <= int(raw) <= len(choices):
            print(CLIColors.warning("⏭️  No selection made."))
            return None
        return int(raw) - 1

    def _pick_plan(self, prompt: str, plans: list[ProjectPlan]) -> Optional[ProjectPlan]:
        idx = self._choose(prompt, [f"{p.title} ({p.status})" for p in plans])
        return None if idx is None else plans[idx]

    def _resolve_plan(self, plan_ref: Optional[str]) -> Optional[ProjectPlan]:
        """Find a plan by id, then by fuzzy title, then interactively"""
        plans = self.store.list()
        if not plans:
            print(CLIColors.warning("📝 No plans found"))
            print(CLIColors.dim('💡 Create your first plan with: code-planner create "your task"'))
            return None

        if not plan_ref:
            print(CLIColors.info("🔍 Select a plan:"))
            return self._pick_plan("Choose a plan", plans)

        exact = self.store.load(plan_ref)
        if exact:
            return exact

        matches = self.store.find_by_title(plan_ref)
        if not matches:
            print(CLIColors.error(f'❌ Plan "{plan_ref}" not found.'))
            print(CLIColors.warning("\n📋 Available plans:"))
            for i, p in enumerate(plans, 1):
                print(f"   {i}. {CLIColors.info(p.id)} - {p.title}")
            return None
        if len(matches) == 1:
            print(CLIColors.success(f'✅ Found plan: "{matches[0].title}"'))
            return matches[0]

        print(CLIColors.warning(f'🔍 Multiple plans match "{plan_ref}":'))
        return self._pick_plan("Which plan did you mean?", matches)

    def create_plan(self, task: str, project_type: Optional[str] = None, framework: Optional[str] = None,
                    interactive: bool = False, use_ai: bool = True) -> bool:
        """Generate a plan for a task and save it"""
        try:
            print(CLIColors.info("[*] Creating your coding plan..."))
            self.config_manager.init_config()
            options = CreatePlanOptions(project_type=project_type, framework=framework)

            if use_ai:
                generator = PlanGenerator(self._build_llm())
                print(CLIColors.info("🤖 AI analyzing your task..."))
            else:
                generator = PlanGenerator()

            result = generator.generate_with_source(task, options)
            plan = result.plan
            if result.from_ai:
                print(CLIColors.success("✅ AI plan generated successfully!"))
            elif use_ai:
                print(CLIColors.warning("⚠️  AI generation unavailable, created a basic plan."))
            else:
                print(CLIColors.warning("⚠️  Created basic plan without AI assistance."))

            self.store.save(plan)
            print(CLIColors.success("✅ Plan saved successfully!"))

            print(CLIColors.highlight("\n📋 Plan Created:"))
            print(f"  Title: {plan.title}")
            print(f"  Type: {plan.overview.project_type}")
            print(f"  Estimated: {plan.overview.estimated_time}")
            print(f"  Complexity: {plan.overview.complexity}")
            print(f"  Steps: {len(plan.steps)} tasks planned")

            if interactive:
                answer = input(CLIColors.info("Would you like to view the detailed plan now? (Y/n): ")).strip().lower()
                if answer in ["", "y", "yes"]:
                    print(CLIColors.info("\n📝 Plan Overview:"))
                    for i, step in enumerate(plan.steps, 1):
                        print(f"   {i}. {CLIColors.info(step.title)}")
                        print(f"      {CLIColors.dim(step.description)}")

            print(CLIColors.dim(f"\n🆔 Plan ID: {plan.id}"))
            print(CLIColors.dim('Use "code-planner list" to see all plans'))
            print(CLIColors.dim(f'Use "code-planner show {plan.id}" for details'))
            print(CLIColors.dim(f'Use "code-planner progress {plan.id}" to start'))
            return True

        except Exception as e:
            print(CLIColors.error(f"❌ Error creating plan: {str(e)}"))
            return False

    def list_plans(self, status: Optional[str] = None, limit: int = 10) -> bool:
        """List saved plans, newest first"""
        try:
            plans = self.store.list()
            if status:
                plans = [p for p in plans if p.status == status]
            plans = plans[:limit]

            if not plans:
                print(CLIColors.warning("\n📝 No plans found"))
                print(CLIColors.dim('💡 Create your first plan with: code-planner create "your task"'))
                return True

            print(CLIColors.success(f"\n📋 Found {len(plans)} plan(s):"))
            print(CLIColors.dim("─" * 60))
            for i, p in enumerate(plans, 1):
                print(f"\n{i}. {Style.BRIGHT}{p.title}{Style.RESET_ALL}")
                print(f"   ID: {CLIColors.info(p.id)}")
                print(f"   Status: {status_badge(p.status)}")
                print(f"   Created: {p.created_at.astimezone():%Y-%m-%d}")
                print(f"   Progress: {progress_bar(p.progress.percentage, 20)} {p.progress.percentage}% "
                      f"({p.progress.completed_steps}/{p.progress.total_steps})")
            print(CLIColors.dim("\n" + "─" * 60))
            print(CLIColors.dim('💡 Use "code-planner show <plan-id>" to view details'))
            return True

        except Exception as e:
            print(CLIColors.error(f"❌ Error listing plans: {str(e)}"))
            return False

    def show_plan(self, plan_ref: Optional[str] = None, steps: bool = False, files: bool = False,
                  dependencies: bool = False) -> bool:
        """Show details of one plan"""
        try:
            plan = self._resolve_plan(plan_ref)
            if not plan:
                return False

            print(CLIColors.success("\n📋 Plan Details:"))
            print(CLIColors.dim("─" * 70))
            print(f"\n{Style.BRIGHT}📌 {plan.title}{Style.RESET_ALL}")
            print(CLIColors.dim(f"💭 {plan.description}"))
            print(f"\n🆔 ID: {CLIColors.info(plan.id)}")
            print(f"📊 Status: {status_badge(plan.status)}")
            print(f"📅 Created: {plan.created_at.astimezone():%Y-%m-%d}")
            print(f"🔄 Updated: {plan.updated_at.astimezone():%Y-%m-%d}")

            print(CLIColors.warning("\n🎯 Overview:"))
            print(f"   Type: {plan.overview.project_type}")
            print(f"   Estimated Time: {plan.overview.estimated_time}")
            print(f"   Complexity: {complexity_badge(plan.overview.complexity)}")

            print(CLIColors.warning("\n📈 Progress:"))
            print(f"   {progress_bar(plan.progress.percentage)} {plan.progress.percentage}%")
            print(f"   Completed: {plan.progress.completed_steps}/{plan.progress.total_steps} steps")

            print(CLIColors.warning("\n📝 Steps:"))
            self._print_steps(plan, detailed=steps)

            if files:
                print(CLIColors.warning("\n📁 File Structure:"))
                print(CLIColors.dim("   📂 Directories:"))
                for d in plan.file_structure.directories:
                    print(f"      📂 {d}")
                print(CLIColors.dim("   📄 Files:"))
                for f in plan.file_structure.files:
                    print(f"      📄 {f}")

            if dependencies:
                print(CLIColors.warning("\n📦 Dependencies:"))
                for label, items in (("NPM Packages", plan.dependencies.npm),
                                     ("APIs", plan.dependencies.apis),
                                     ("Services", plan.dependencies.services)):
                    print(CLIColors.dim(f"   {label}:"))
                    for item in items:
                        print(f"      • {item}")

            print(CLIColors.dim("\n" + "─" * 70))
            print(CLIColors.dim("💡 Next steps:"))
            print(CLIColors.dim(f"   code-planner progress {plan.id} --step 1 --complete"))
            print(CLIColors.dim(f"   code-planner show {plan.id} --steps --files --dependencies"))
            print(CLIColors.dim(f"   code-planner list --status {plan.status}"))
            return True

        except Exception as e:
            print(CLIColors.error(f"❌ Error loading plan: {str(e)}"))
            return False

    def _print_steps(self, plan: ProjectPlan, detailed: bool = False) -> None:
        for i, step in enumerate(plan.steps, 1):
            icon = CLIColors.success("✅") if step.completed else CLIColors.error("⭕")
            title = CLIColors.dim(step.title) if step.completed else step.title
            print(f"   {i}. {icon} {title}")
            if detailed:
                print(f"      {CLIColors.dim('📄 ' + step.description)}")
                print(f"      {CLIColors.dim('📁 Files:')} {', '.join(step.files)}")
                print(f"      {CLIColors.dim('📦 Dependencies:')} {', '.join(step.dependencies)}\n")

    def _print_suggestions(self, plan: ProjectPlan) -> None:
        generator = PlanGenerator(self._build_llm())
        print(CLIColors.highlight("\n💡 Suggestions:"))
        for line in generator.suggest_next_steps(plan):
            print(f"   - {line}")

    def update_progress(self, plan_ref: Optional[str] = None, step: Optional[int] = None,
                        complete: bool = False, incomplete: bool = False, show: bool = False,
                        suggest: bool = False) -> bool:
        """Mark a step complete or incomplete"""
        try:
            if complete and incomplete:
                print(CLIColors.error("❌ Cannot use --complete and --incomplete together"))
                return False

            plan = self._resolve_plan(plan_ref)
            if not plan:
                return False

            if show:
                print(CLIColors.info("\n📈 Current Progress:"))
                print(CLIColors.dim("─" * 50))
                print(f"\n{Style.BRIGHT}{plan.title}{Style.RESET_ALL}")
                print(f"Status: {status_badge(plan.status)}")
                print(f"\n{progress_bar(plan.progress.percentage)} {plan.progress.percentage}%")
                print(f"Completed: {plan.progress.completed_steps}/{plan.progress.total_steps} steps\n")
                self._print_steps(plan)
                if suggest:
                    self._print_suggestions(plan)
                return True

            if step is None:
                print(CLIColors.info("\n📝 Select a step to update:"))
                idx = self._choose("Choose a step", [
                    f"{'Completed' if s.completed else 'Not completed'} - {s.title}" for s in plan.steps
                ])
                if idx is None:
                    return True
                step = idx + 1

            if not 1 <= step <= len(plan.steps):
                raise StepNotFoundError(step, len(plan.steps))
            current = plan.steps[step - 1]
            old_status = current.completed

            if complete or incomplete:
                new_status = complete
            else:
                state = "completed" if old_status else "incomplete"
                answer = input(CLIColors.info(
                    f'Step {step}: "{current.title}" is currently {state}. Mark as (c)ompleted, (i)ncomplete or (n)o change? '
                )).strip().lower()
                if answer not in ["c", "i"]:
                    print(CLIColors.warning("⏭️  No changes made"))
                    return True
                new_status = answer == "c"

            updated = self.progress_engine.set_step_completion(plan, step, new_status)

            change = f" (changed from {'completed' if old_status else 'incomplete'})" if old_status != new_status else " (no change)"
            icon = CLIColors.success("✅") if new_status else CLIColors.error("⭕")
            print(CLIColors.success("\n✅ Step updated successfully!"))
            print(f"   {icon} Step {step}: {current.title}")
            print(f"   Status: {'completed' if new_status else 'incomplete'}{CLIColors.dim(change)}")

            p = updated.progress
            print(CLIColors.info("\n📈 Updated Progress:"))
            print(f"   {progress_bar(p.percentage)} {p.percentage}%")
            print(f"   Completed: {p.completed_steps}/{p.total_steps} steps")

            next_step = updated.next_step()
            if new_status and next_step:
                print(CLIColors.dim(f"\n➡️  Next step: {next_step.title}"))
                print(CLIColors.dim(f"   Run: code-planner progress {updated.id} --step {next_step.order} --complete"))

            if p.total_steps and p.completed_steps == p.total_steps:
                print(CLIColors.success("\n🎉 Congratulations! All steps completed!"))
                print(CLIColors.dim('   Consider updating plan status to "completed"'))

            if suggest:
                self._print_suggestions(updated)
            return True

        except StepNotFoundError as e:
            print(CLIColors.error(f"❌ {e}"))
            return False
        except Exception as e:
            print(CLIColors.error(f"❌ Error updating progress: {str(e)}"))
            return False

    def configure(self, set_api_key: bool = False, show: bool = False, reset: bool = False) -> bool:
        """Manage the Gemini key and defaults"""
        try:
            if set_api_key:
                return self._set_api_key()
            if show:
                return self._show_config()
            if reset:
                answer = input(CLIColors.warning("Are you sure you want to reset all configuration? (y/N): ")).strip().lower()
                if answer not in ["y", "yes"]:
                    print(CLIColors.warning("🚫 Configuration reset cancelled"))
                    return True
                self.config_manager.reset_config()
                print(CLIColors.success("✅ Configuration reset to defaults"))
                return True
            return self._setup_guide()

        except Exception as e:
            print(CLIColors.error(f"❌ Configuration error: {str(e)}"))
            return False

    def _set_api_key(self) -> bool:
        print(CLIColors.info("🔑 Setting up your Gemini API key...\n"))
        print(CLIColors.warning("📋 To get your FREE API key:"))
        print(CLIColors.dim("   1. Visit: https://aistudio.google.com/app/apikey"))
        print(CLIColors.dim("   2. Sign in with your Google account"))
        print(CLIColors.dim('   3. Click "Create API Key"'))
        print(CLIColors.dim("   4. Copy the generated key\n"))

        api_key = getpass.getpass("Enter your Gemini API key: ").strip()
        if not api_key:
            print(CLIColors.error("❌ API key cannot be empty"))
            return False
        if len(api_key) < 20:
            print(CLIColors.error("❌ API key seems too short. Please check and try again."))
            return False

        self.config_manager.set_api_key(api_key)
        print(CLIColors.success("✅ API key saved successfully!"))
        print(CLIColors.dim('💡 You can now create AI-powered plans with: code-planner create "your task"'))
        return True

    def _show_config(self) -> bool:
        config = self.config_manager.load_config()
        env_key = os.environ.get(API_KEY_ENV)
        print(CLIColors.info("⚙️  Current Configuration:\n"))
        print(f"🔑 API Key: {CLIColors.success('Set (hidden)') if config.gemini_api_key else CLIColors.error('Not set')}")
        if env_key and not config.gemini_api_key:
            print(f"🌍 Environment API Key: {CLIColors.info('Available')}")
        print(f"🤖 Model: {config.gemini_model}")
        print(f"📁 Output Directory: {config.default_output_dir}")
        print(f"📊 Max Plans: {config.max_plans}")
        print(f"🗂️  Storage: {self.store.root}")

        stats = self.store.stats()
        print(f"📋 Plans: {stats['total_plans']} total, {stats['in_progress_plans']} in progress, "
              f"{stats['completed_plans']} completed")

        if not resolve_api_key(config):
            print(CLIColors.warning("\n⚠️  No API key configured!"))
            print(CLIColors.dim("💡 Run: code-planner config --set-api-key"))
        return True

    def _setup_guide(self) -> bool:
        print(CLIColors.info("🚀 code-planner Configuration\n"))
        if resolve_api_key(self.config_manager.load_config()):
            print(CLIColors.success("✅ You're all set up!\n"))
            print(CLIColors.dim("Available commands:"))
            print(CLIColors.dim('   code-planner create "build a todo app"'))
            print(CLIColors.dim("   code-planner list"))
            print(CLIColors.dim("   code-planner config --show"))
        else:
            print(CLIColors.warning("🔑 API Key Setup Required\n"))
            print(CLIColors.dim("To enable AI-powered planning:"))
            print(CLIColors.info("   code-planner config --set-api-key\n"))
            print(CLIColors.dim("Or set environment variable:"))
            print(CLIColors.info(f'   export {API_KEY_ENV}="your-api-key-here"\n'))
            print(CLIColors.dim("You can still use basic planning without API key:"))
            print(CLIColors.info('   code-planner create "your task" --no-ai'))
        print(CLIColors.dim("\nFor help: code-planner --help"))
        return True

def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser"""
    parser = argparse.ArgumentParser(
        prog="code-planner",
        description="AI-powered planning layer for coding tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s create "Build a todo app with authentication"
  %(prog)s list
  %(prog)s show my-plan-id
  %(prog)s progress my-plan-id --step 1 --complete
  %(prog)s config --set-api-key

First time setup:
  %(prog)s config --set-api-key
  Get free API key: https://aistudio.google.com/app/apikey
"""
    )

    parser.add_argument(
        "--home",
        type=str,
        help="Storage directory (default: $CODE_PLANNER_HOME or ~/.code-planner)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Create command
    create_cmd = subparsers.add_parser("create", help="Create a new coding plan from a task description")
    create_cmd.add_argument("task", help="Description of the coding task")
    create_cmd.add_argument("--type", "-t", dest="project_type", help="Project type (frontend/backend/fullstack)")
    create_cmd.add_argument("--framework", "-f", help="Preferred framework")
    create_cmd.add_argument("--interactive", "-i", action="store_true", help="Ask interactive questions")
    create_cmd.add_argument("--no-ai", action="store_true", help="Create basic plan without AI generation")

    # List command
    list_parser = subparsers.add_parser("list", help="List all saved coding plans")
    list_parser.add_argument("--status", "-s", choices=STATUSES, help="Filter by status")
    list_parser.add_argument("--limit", "-l", type=positive_int, default=10, help="Maximum number of plans to show")

    # Show command
    show_parser = subparsers.add_parser("show", help="Show detailed information about a plan")
    show_parser.add_argument("plan_id", nargs="?", help="ID or title of the plan (optional)")
    show_parser.add_argument("--steps", "-s", action="store_true", help="Show detailed steps breakdown")
    show_parser.add_argument("--files", "-f", action="store_true", help="Show file structure details")
    show_parser.add_argument("--dependencies", "-d", action="store_true", help="Show dependencies information")

    # Progress command
    progress_parser = subparsers.add_parser("progress", help="Update step completion status for a plan")
    progress_parser.add_argument("plan_id", nargs="?", help="ID or title of the plan (optional)")
    progress_parser.add_argument("--step", "-s", type=int, help="Step number to update (1, 2, 3, etc.)")
    progress_parser.add_argument("--complete", "-c", action="store_true", help="Mark step as completed")
    progress_parser.add_argument("--incomplete", "-i", action="store_true", help="Mark step as incomplete")
    progress_parser.add_argument("--show", action="store_true", help="Show current progress without updating")
    progress_parser.add_argument("--suggest", action="store_true", help="Suggest actions for the next step")

    # Config command
    config_parser = subparsers.add_parser("config", help="Manage code-planner configuration")
    config_parser.add_argument("--set-api-key", action="store_true", help="Set your Gemini API key interactively")
    config_parser.add_argument("--show", action="store_true", help="Show current configuration")
    config_parser.add_argument("--reset", action="store_true", help="Reset configuration to defaults")

    return parser

def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(0)

    try:
        cli = PlannerCLI(args.home)
    except Exception as e:
        print(CLIColors.error(f"❌ Failed to initialize CLI: {str(e)}"))
        sys.exit(1)

    if args.command == "create":
        success = cli.create_plan(args.task, args.project_type, args.framework,
                                  interactive=args.interactive, use_ai=not args.no_ai)

    elif args.command == "list":
        success = cli.list_plans(args.status, args.limit)

    elif args.command == "show":
        success = cli.show_plan(args.plan_id, args.steps, args.files, args.dependencies)

    elif args.command == "progress":
        success = cli.update_progress(args.plan_id, args.step, args.complete, args.incomplete,
                                      args.show, args.suggest)

    elif args.command == "config":
        success = cli.configure(args.set_api_key, args.show, args.reset)

    else:
        print(CLIColors.error(f"❌ Unknown command: {args.command}"))
        parser.print_help()
        success = False

    sys.exit(0 if success else 1)

if __name__ == "__main__":
    main()
