import pytest
from unittest.mock import MagicMock, patch

import run
from directory import NodeDirectory, Peer
from errors import TransportError
from protocol import CoordinationProtocol


@pytest.fixture
def roster_file(tmp_path):
    path = tmp_path / "nodes.txt"
    path.write_text("A localhost 5001\nB localhost 5002\nC localhost 5003\n")
    return path


@pytest.fixture
def mock_logger():
    return MagicMock()


def test_parser_requires_two_arguments(roster_file):
    with pytest.raises(SystemExit) as exc:
        run.main([str(roster_file)])
    assert exc.value.code == 2


def test_parser_defaults(roster_file):
    args = run.build_parser().parse_args([str(roster_file), "A"])
    assert args.config == str(roster_file)
    assert args.node_id == "A"
    assert args.events == run.EVENT_LIMIT
    assert args.interval == run.TICK_INTERVAL
    assert args.seed is None


def test_unknown_node_is_fatal(roster_file, capsys):
    with patch("run.Messenger") as mock_messenger:
        assert run.main([str(roster_file), "Z"]) == 1
        mock_messenger.assert_not_called()
    assert "error:" in capsys.readouterr().err


def test_missing_config_is_fatal(tmp_path, capsys):
    assert run.main([str(tmp_path / "missing.txt"), "A"]) == 1
    assert "error:" in capsys.readouterr().err


def test_build_node_wiring(mock_logger):
    directory = NodeDirectory([Peer("A", "localhost", 5001)], "A")
    args = run.build_parser().parse_args(
        ["nodes.txt", "A", "--events", "7", "--interval", "0.05", "--seed", "3"]
    )

    node = run.build_node(directory, args, log=mock_logger)

    assert isinstance(node, CoordinationProtocol)
    assert node.scheduler.limit == 7
    assert node.scheduler.interval == 0.05
    assert node.scheduler.clock.name == "A"
    assert node.scheduler.rng is node.scheduler.clock.rng
    assert node.messenger is node.scheduler.messenger


def test_seed_makes_runs_reproducible(mock_logger):
    directory = NodeDirectory([Peer("A", "localhost", 5001)], "A")
    args = run.build_parser().parse_args(["nodes.txt", "A", "--seed", "5"])

    first = run.build_node(directory, args, log=mock_logger).scheduler
    second = run.build_node(directory, args, log=mock_logger).scheduler
    for _ in range(10):
        first.run_round()
        second.run_round()
    assert first.clock.value == second.clock.value


@patch("run.logger.setup_logger")
def test_main_runs_node(mock_setup_logger, roster_file, mock_logger, tmp_path, capsys):
    mock_setup_logger.return_value = mock_logger
    with patch.object(CoordinationProtocol, "run", return_value=42) as mock_run:
        code = run.main([str(roster_file), "B", "--log-dir", str(tmp_path)])

    assert code == 0
    mock_run.assert_called_once()
    assert mock_setup_logger.call_args[0][0] == "B"
    assert mock_setup_logger.call_args[1]["log_dir"] == str(tmp_path)
    assert "clock 42" in capsys.readouterr().out


@patch("run.logger.setup_logger")
def test_bind_failure_is_fatal(mock_setup_logger, roster_file, mock_logger, capsys):
    mock_setup_logger.return_value = mock_logger
    with patch.object(
        CoordinationProtocol, "run", side_effect=TransportError("Cannot bind")
    ):
        assert run.main([str(roster_file), "A"]) == 1
    assert "Cannot bind" in capsys.readouterr().err


@patch("run.logger.setup_logger")
def test_keyboard_interrupt_closes_listener(mock_setup_logger, roster_file, mock_logger):
    mock_setup_logger.return_value = mock_logger
    with patch.object(CoordinationProtocol, "run", side_effect=KeyboardInterrupt):
        with patch("run.Messenger") as mock_messenger:
            assert run.main([str(roster_file), "A"]) == 130
            mock_messenger.return_value.close.assert_called_once()
