import pytest

import main
from discovery.models import NoLocalAddressError


class FakeServer:
    def __init__(self, outcome):
        self.outcome = outcome

    async def discover_stream_url(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def test_config_path_from_argument_then_environment(monkeypatch):
    monkeypatch.delenv('CONFIG_FILE', raising=False)
    assert main.parse_args([]).config == 'config/config.yaml'
    assert main.parse_args(['--config', 'other.yaml']).config == 'other.yaml'

    monkeypatch.setenv('CONFIG_FILE', 'env.yaml')
    args = main.parse_args([])
    assert args.config == 'env.yaml'
    assert args.scan is False


@pytest.mark.asyncio
async def test_scan_once_prints_stream_url(capsys):
    code = await main.scan_once(FakeServer('http://192.168.1.105/stream'))
    assert code == main.EXIT_OK
    assert capsys.readouterr().out.strip() == 'http://192.168.1.105/stream'


@pytest.mark.asyncio
async def test_scan_once_exit_codes():
    assert await main.scan_once(FakeServer(None)) == main.EXIT_NOT_FOUND
    assert await main.scan_once(FakeServer(NoLocalAddressError("no address"))) == main.EXIT_FAILED


@pytest.mark.asyncio
async def test_missing_config_fails_cleanly(tmp_path):
    assert await main.main(['--config', str(tmp_path / 'missing.yaml')]) == main.EXIT_FAILED
