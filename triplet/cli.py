"""
Triplet CLI - Command-line interface for the engine.

Usage:
    triplet play [--size N] [--robot neither|O|X|both]   Play in the terminal
    triplet simulate [--games N] [--size N]              Robot vs robot statistics
    triplet serve [--host H] [--port P]                  Run the HTTP/WebSocket API

Environment:
    TRIPLET_LOG_LEVEL  Default log level (WARNING)
"""

import argparse
import dataclasses
import logging
import os
import sys
import time

from .engine_core.config import GameConfig
from .errors import InvalidConfiguration

LOG_LEVEL = os.getenv("TRIPLET_LOG_LEVEL", "WARNING")


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Triplet - Two-player tile-capture board game",
        prog="triplet",
    )
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level (default: %(default)s)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a game in the terminal")
    play_parser.add_argument("--size", type=int, help="Board size (3-10)")
    play_parser.add_argument(
        "--robot", default="neither", choices=["neither", "O", "X", "both"],
        help="Which side the robot plays",
    )
    play_parser.add_argument("--seed", type=int, help="Seed for a reproducible game")
    play_parser.add_argument("--delay", type=int, help="Robot delay in milliseconds")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play robot vs robot games")
    simulate_parser.add_argument("--games", type=int, default=100, help="Number of games")
    simulate_parser.add_argument("--size", type=int, help="Board size (3-10)")
    simulate_parser.add_argument("--seed", type=int, help="Seed of the first game")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP/WebSocket API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        if args.command == "play":
            cmd_play(args)
        elif args.command == "simulate":
            cmd_simulate(args)
        elif args.command == "serve":
            cmd_serve(args)
        else:
            parser.print_help()
            sys.exit(1)
    except InvalidConfiguration as e:
        print(f"Error: {e.message}")
        sys.exit(2)


def _config_from_args(args, robot: str = "neither") -> GameConfig:
    config = GameConfig.from_env(robot=robot, seed=args.seed)
    if args.size is not None:
        config = config.with_changes(board_size=args.size)
    return config


def _print_state(engine):
    print()
    print(engine.board.render())
    a, b = engine.score.as_tuple()
    print(f"Score  O: {a}  X: {b}")
    if engine.selection:
        picked = " ".join(f"({r},{c})" for r, c in engine.selection)
        print(f"Selected: {picked}")


def cmd_play(args):
    """Play a game in the terminal."""
    from .session import GameLoop, LoopState

    config = _config_from_args(args, robot=args.robot)
    if args.delay is not None:
        config = dataclasses.replace(config, robot_delay_ms=args.delay)

    loop = GameLoop.create(config, sleep=time.sleep)
    print(f"Triplet on a {config.board_size}x{config.board_size} board, robot: {args.robot}")
    print("Type 'help' for commands.")
    result = loop.start()

    while True:
        for line in result.actions + result.messages + result.errors:
            print(line)
        if result.loop_state is not LoopState.WAITING_HUMAN:
            break

        _print_state(loop.engine)
        try:
            command = input(f"{loop.engine.current_player.value}> ")
        except EOFError:
            command = "quit"
        result = loop.process_command(command)

    if result.loop_state is LoopState.GAME_OVER:
        _print_state(loop.engine)


def cmd_simulate(args):
    """Play robot vs robot games and print statistics."""
    from .engine_core.state import Symbol
    from .session import play_robot_game

    config = _config_from_args(args)
    wins = {Symbol.PLAYER_A: 0, Symbol.PLAYER_B: 0}
    ties = 0
    total_a = total_b = 0

    for i in range(args.games):
        seed = args.seed + i if args.seed is not None else None
        engine = play_robot_game(dataclasses.replace(config, seed=seed))
        if engine.winner:
            wins[engine.winner] += 1
        else:
            ties += 1
        a, b = engine.score.as_tuple()
        total_a += a
        total_b += b

    games = max(args.games, 1)
    print(f"Played {args.games} game(s) on a {config.board_size}x{config.board_size} board")
    print(f"  O wins: {wins[Symbol.PLAYER_A]}")
    print(f"  X wins: {wins[Symbol.PLAYER_B]}")
    print(f"  Ties:   {ties}")
    print(f"  Average score  O: {total_a / games:.2f}  X: {total_b / games:.2f}")


def cmd_serve(args):
    """Run the HTTP/WebSocket API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install fastapi uvicorn")
        sys.exit(1)

    uvicorn.run("triplet.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
