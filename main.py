"""
Main game loop for a Werewolf game in the terminal.
"""

import argparse
import asyncio
import logging
import random
from typing import Awaitable, Callable, Dict, List, Optional

from dotenv import load_dotenv

from werewolf.agents import (
    BaseAgent,
    DummyAgent,
    LLMAgent,
    HumanAgent,
    AgentDecisionError,
    Decision,
    DecisionRequest,
    SpeechRequest,
    resolve_choice,
    generate_npc_profiles,
)
from werewolf.config import GameConfig, default_config, load_config
from werewolf.core import (
    ActionType,
    GamePhase,
    NpcCharacter,
    Player,
    RoleType,
    create_action,
    generate_default_npc_characters,
    get_role_spec,
)
from werewolf.engine import GameEngine, GameResult
from werewolf.recording import RunRecorder

logger = logging.getLogger(__name__)

HUMAN_PLAYER_ID = "human_player"
FALLBACK_SPEECH = "I'll pass for now."

NIGHT_TURN_ACTIONS = {
    GamePhase.GUARD_TURN: ActionType.GUARD_PROTECT,
    GamePhase.WEREWOLF_TURN: ActionType.WEREWOLF_KILL,
    GamePhase.SEER_TURN: ActionType.SEER_CHECK,
}


class WerewolfGame:
    """Drives a GameEngine with agents until one team wins."""

    def __init__(self, config: Optional[GameConfig] = None, run_name: Optional[str] = None,
                 record: bool = True, runs_dir: str = "runs",
                 human_role: Optional[RoleType] = None,
                 human_input: Optional[Callable[[str], Awaitable[str]]] = None):
        self.config = config or GameConfig(**default_config.to_dict())

        # Generate seed if not provided so the run can be replayed
        if self.config.random_seed is None:
            self.config.random_seed = random.randint(0, 2**31 - 1)

        self.engine = GameEngine(seed=self.config.random_seed)
        # Separate stream for fallback picks so they don't shift the engine's rolls
        self.rng = random.Random(self.config.random_seed + 1)
        self.human_role = human_role
        self.human_input = human_input
        self.agents: Dict[str, BaseAgent] = {}
        self.announcements: List[str] = []

        self.run_recorder: Optional[RunRecorder] = None
        if record:
            self.run_recorder = RunRecorder(runs_dir)
            run_name = self.run_recorder.create_run(run_name)
            print(f"Recording game to: {runs_dir}/{run_name}/")
        self._recorded_events = 0

    # ======== Setup ========

    async def _load_profiles(self) -> List[NpcCharacter]:
        npc_count = self.config.player_count - 1
        if self.config.agent_type == "llm_agent":
            try:
                return await generate_npc_profiles(npc_count, self.config)
            except AgentDecisionError as e:
                logger.warning("Falling back to built-in NPC roster: %s", e.message)
        return generate_default_npc_characters(npc_count)

    async def setup(self) -> List[Player]:
        profiles = await self._load_profiles()
        players = self.engine.initialize(
            self.config,
            HUMAN_PLAYER_ID,
            profiles,
            forced_human_role=self.human_role,
            human_name=self.config.human_name,
        )
        for player in players:
            self.agents[player.id] = self._create_agent(player)

        if self.run_recorder:
            self.run_recorder.save_metadata({
                "players": [p.to_dict() for p in players],
                "config": self.config.to_dict(),
            })
        return players

    def _create_agent(self, player: Player) -> BaseAgent:
        """Create an agent for a player based on config."""
        if player.is_human and self.config.play_mode == "player":
            return HumanAgent(player, self.config, input_fn=self.human_input)

        agent_type = self.config.agent_type.lower()
        if agent_type == "dummy_agent":
            return DummyAgent(player, self.config)
        elif agent_type == "llm_agent":
            return LLMAgent(player, self.config)
        else:
            raise ValueError(
                f"Unknown agent_type: {agent_type}. "
                f"Must be 'llm_agent' or 'dummy_agent'"
            )

    def announce(self, message: str) -> None:
        """Make a moderator announcement."""
        if self.config.use_announcements:
            self.announcements.append(message)
            print(f"[MODERATOR] {message}")

    def _tell_human(self, player: Player, message: str) -> None:
        if player.is_human and self.config.play_mode == "player":
            print(f"[PRIVATE] {message}")

    def _flush_events(self) -> None:
        if not self.run_recorder:
            return
        events = self.engine.get_full_history()
        self._recorded_events += self.run_recorder.record_events(events[self._recorded_events:])

    # ======== Game loop ========

    async def run(self) -> Optional[GameResult]:
        """
        Run the complete game until a team wins or max_rounds is exceeded.

        Returns:
            The GameResult, or None when the round limit stopped the game
        """
        if not self.agents:
            await self.setup()

        human = self.engine.get_state().get_human_player()
        self._tell_human(human, f"You are {human.display_name}, the {get_role_spec(human.role).display_name}.")

        result = None
        while True:
            transition = self.engine.next_phase()
            if not transition.success:
                if self.engine.get_pending_death_shots():
                    await self._handle_death_shots()
                    continue
                break

            if (transition.new_phase == GamePhase.NIGHT_START
                    and self.engine.get_current_round() > self.config.max_rounds):
                self.announce(f"Round limit of {self.config.max_rounds} reached. The game is stopped.")
                break

            self.announce(transition.message)
            await self._handle_phase(transition.new_phase)

            result = self.engine.check_game_end()
            self._flush_events()
            if result:
                break

        self._flush_events()
        if self.run_recorder:
            self.run_recorder.save_snapshot(self.engine.snapshot())
        self._print_game_summary(result)
        return result

    async def _handle_phase(self, phase: GamePhase) -> None:
        if phase in NIGHT_TURN_ACTIONS:
            action_type = NIGHT_TURN_ACTIONS[phase]
            for player in self.engine.get_players_needing_action():
                await self._night_action(player, action_type)
        elif phase == GamePhase.WITCH_TURN:
            for witch in self.engine.get_players_needing_action():
                await self._witch_turn(witch)
        elif phase == GamePhase.DAY_START:
            self.announce(self.engine.get_night_result_message())
            await self._handle_death_shots()
        elif phase == GamePhase.DISCUSSION:
            await self._discussion()
        elif phase == GamePhase.VOTE:
            await self._vote()
        elif phase == GamePhase.EXECUTION:
            await self._execution()

    def _decision_request(self, player: Player, action_type: ActionType, candidates: List[Player],
                          allow_skip: bool = False) -> DecisionRequest:
        discussion = ""
        if action_type == ActionType.VOTE:
            discussion = self.engine.get_full_discussion_for_voting()
        return DecisionRequest(
            player=player,
            action_type=action_type,
            candidates=candidates,
            round=self.engine.get_current_round(),
            phase=self.engine.get_phase(),
            history_summary=self.engine.get_game_summary_for_player(player.id),
            discussion=discussion,
            allow_skip=allow_skip,
        )

    async def _decide(self, player: Player, action_type: ActionType, candidates: List[Player],
                      allow_skip: bool = False) -> Optional[str]:
        """Ask the player's agent and map the answer onto a legal target."""
        request = self._decision_request(player, action_type, candidates, allow_skip)
        try:
            decision: Optional[Decision] = await self.agents[player.id].choose_target(request)
        except AgentDecisionError as e:
            logger.warning("Agent for %s failed during %s: %s", player.display_name, e.action_type, e.message)
            if allow_skip:
                return None
            decision = None
        return resolve_choice(decision, candidates, self.rng, allow_skip)

    def _submit(self, player: Player, action_type: ActionType, target_id: Optional[str] = None,
                content: Optional[str] = None):
        action = create_action(action_type, player.id, self.engine.get_current_round(), target_id, content)
        return self.engine.execute_action(action)

    async def _night_action(self, player: Player, action_type: ActionType) -> None:
        candidates = self.engine.get_valid_targets(player.id)
        if not candidates:
            self._submit(player, ActionType.SKIP)
            return
        target_id = await self._decide(player, action_type, candidates)
        result = self._submit(player, action_type, target_id)
        if not result.success:
            self._submit(player, ActionType.SKIP)
        self._tell_human(player, result.message)

    async def _witch_turn(self, witch: Player) -> None:
        # One potion per night: a save ends the turn
        victim = self.engine.get_witch_save_target(witch.id)
        if victim is not None:
            self._tell_human(witch, f"{victim.display_name} was attacked tonight.")
            if await self._decide(witch, ActionType.WITCH_SAVE, [victim], allow_skip=True):
                result = self._submit(witch, ActionType.WITCH_SAVE)
                self._tell_human(witch, result.message)
                if result.success:
                    return

        candidates = self.engine.get_valid_targets(witch.id)
        target_id = None
        if candidates:
            target_id = await self._decide(witch, ActionType.WITCH_POISON, candidates, allow_skip=True)
        if target_id:
            result = self._submit(witch, ActionType.WITCH_POISON, target_id)
            self._tell_human(witch, result.message)
            if result.success:
                return
        self._submit(witch, ActionType.SKIP)

    async def _handle_death_shots(self) -> None:
        while self.engine.get_pending_death_shots():
            shooter = self.engine.get_pending_death_shots()[0]
            candidates = self.engine.get_valid_targets(shooter.id)
            target_id = await self._decide(shooter, ActionType.DEATH_SHOT, candidates, allow_skip=True)
            result = self._submit(shooter, ActionType.DEATH_SHOT, target_id)
            if not result.success:
                result = self._submit(shooter, ActionType.DEATH_SHOT, None)
            self.announce(result.message)

    async def _speak(self, player: Player, previous: List[str], is_last_words: bool = False) -> None:
        request = SpeechRequest(
            player=player,
            round=self.engine.get_current_round(),
            phase=self.engine.get_phase(),
            history_summary=self.engine.get_game_summary_for_player(player.id),
            previous_speeches=previous,
            is_last_words=is_last_words,
        )
        try:
            speech = await self.agents[player.id].speak(request)
        except AgentDecisionError as e:
            logger.warning("Agent for %s could not speak: %s", player.display_name, e.message)
            speech = FALLBACK_SPEECH
        result = self._submit(player, ActionType.SPEECH, content=speech or FALLBACK_SPEECH)
        if result.success:
            self.announce(result.message)

    async def _discussion(self) -> None:
        speakers = sorted(self.engine.get_alive_players(), key=lambda p: p.seat_number)
        for index, player in enumerate(speakers):
            await self._speak(player, self.engine.get_discussion_context(index))

    async def _vote(self) -> None:
        for player in sorted(self.engine.get_players_needing_action(), key=lambda p: p.seat_number):
            candidates = self.engine.get_valid_targets(player.id)
            target_id = await self._decide(player, ActionType.VOTE, candidates)
            result = self._submit(player, ActionType.VOTE, target_id)
            self.announce(result.message)

    async def _execution(self) -> None:
        vote_result = self.engine.resolve_vote()
        self.announce(vote_result.message)
        if vote_result.has_elimination:
            executed = self.engine.get_state().get_player(vote_result.eliminated_player_id)
            await self._speak(executed, [], is_last_words=True)
        await self._handle_death_shots()
        summary = self.engine.get_round_summary()
        if summary:
            self.announce(summary)

    # ======== Summary ========

    def _print_game_summary(self, result: Optional[GameResult]) -> None:
        print("\n" + "=" * 60)
        if result is None:
            print("GAME STOPPED - no winner")
        else:
            print(result.summary)
        print("=" * 60)
        print(f"Random Seed: {self.config.random_seed}")
        for player in sorted(self.engine.get_players(), key=lambda p: p.seat_number):
            status = "alive" if player.is_alive else player.status.value.lower()
            print(f"  Seat {player.seat_number}: {player.display_name} - "
                  f"{get_role_spec(player.role).display_name} ({status})")


def main():
    """Entry point for running a game."""
    parser = argparse.ArgumentParser(
        description="Play a game of Werewolf in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                    # 6-player board, you play one seat
  python main.py --simulate --seed 42               # All seats played by agents
  python main.py --config configs/advanced_9.yaml   # 9-player board with every role
  python main.py --config configs/llm_agent.yaml --model gpt-4o-mini
        """
    )
    parser.add_argument("--config", "-c", type=str, default=None,
                        help="Path to YAML configuration file (default: use default config)")
    parser.add_argument("--seed", "-s", type=int, default=None,
                        help="Random seed for reproducible games")
    parser.add_argument("--model", "-m", type=str, default=None,
                        help="LLM model to use. Overrides config file setting.")
    parser.add_argument("--run-name", "-r", type=str, default=None,
                        help="Custom name for this run (default: auto-generated timestamp)")
    parser.add_argument("--simulate", action="store_true",
                        help="Let an agent play the human seat too")
    parser.add_argument("--human-role", type=str, default=None,
                        choices=[r.value for r in RoleType],
                        help="Force the role dealt to the human seat")
    parser.add_argument("--name", type=str, default=None,
                        help="Display name for the human seat")

    args = parser.parse_args()
    load_dotenv()

    config = load_config(args.config)
    if args.seed is not None:
        config.random_seed = args.seed
    if args.model is not None:
        config.llm_model = args.model
    if args.simulate:
        config.play_mode = "simulation"
    if args.name:
        config.human_name = args.name

    logging.basicConfig(level=config.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    human_role = RoleType(args.human_role) if args.human_role else None
    game = WerewolfGame(config=config, run_name=args.run_name, human_role=human_role)
    asyncio.run(game.run())

    if game.run_recorder:
        run_path = game.run_recorder.get_run_path()
        if run_path:
            print(f"\nGame events saved to: {run_path}")


if __name__ == "__main__":
    main()
