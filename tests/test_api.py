import httpx
import pytest

from api.main_api import StreamAPI
from discovery.manager import DeviceDiscovery
from session.models import SessionState
from session.stream_session import StreamSession

from conftest import SAMPLE_PROBE_LOG, FakeProcess, FakeProcessFactory, settle


async def _hit_at_105(ip, timeout_seconds):
    return ip.endswith('.105')


def _build(session_config, *processes):
    config = {
        'discovery': {'local_ip': '192.168.1.42', 'host_range': [100, 110], 'probe_timeout_ms': 50},
        'session': dict(session_config, stream_path='stream'),
        'api': {'cors_origins': ['*']},
    }
    discovery = DeviceDiscovery(config['discovery'], prober=_hit_at_105)
    session = StreamSession(config['session'], process_factory=FakeProcessFactory(*processes))
    api = StreamAPI(discovery, session, config)
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=api.app), base_url="http://test")
    return client, session


@pytest.mark.asyncio
async def test_scan_returns_stream_url(session_config):
    client, _ = _build(session_config)
    async with client:
        response = await client.post("/api/discovery/scan", json={})
        body = response.json()
        assert response.status_code == 200
        assert body['found'] is True
        assert body['address'] == '192.168.1.105'
        assert body['stream_url'] == 'http://192.168.1.105/stream'
        assert len(body['hosts_probed']) == 6

        health = (await client.get("/api/system/health")).json()
        assert health['last_scan'] == {'found': True, 'address': '192.168.1.105'}


@pytest.mark.asyncio
async def test_scan_not_found_and_bad_address(session_config):
    client, _ = _build(session_config)
    async with client:
        response = await client.post("/api/discovery/scan", json={'host_low': 100, 'host_high': 104})
        assert response.json()['found'] is False
        assert response.json()['stream_url'] is None

        response = await client.post("/api/discovery/scan", json={'local_ip': 'nowhere'})
        assert response.status_code == 400

        response = await client.post("/api/discovery/scan", json={'timeout_ms': 0})
        assert response.status_code == 400


@pytest.mark.asyncio
async def test_probe_endpoint(session_config):
    client, _ = _build(session_config, lambda: FakeProcess(SAMPLE_PROBE_LOG))
    async with client:
        response = await client.post("/api/session/probe", json={'url': 'http://192.168.1.105/stream'})
        assert response.status_code == 200
        assert response.json() == {
            'real_fps': 30.0,
            'estimated_frame_rate': 15,
            'resolution': '1920x1080',
            'duration': '00:01:05.00',
            'bitrate': '512.0 kb/s',
        }


@pytest.mark.asyncio
async def test_probe_failure_maps_to_502(session_config):
    client, _ = _build(session_config, lambda: FakeProcess("404 Not Found\n", return_code=1))
    async with client:
        response = await client.post("/api/session/probe", json={'url': 'http://a/stream'})
        assert response.status_code == 502
        assert response.json()['detail']['return_code'] == 1


@pytest.mark.asyncio
async def test_download_lifecycle(session_config):
    client, session = _build(session_config, lambda: FakeProcess("frame= 1 fps= 10\n", hold_open=True))
    async with client:
        response = await client.post("/api/session/download", json={'url': 'http://a/stream', 'frame_rate': 'abc'})
        assert response.status_code == 422
        assert session.state == SessionState.IDLE

        response = await client.post("/api/session/download", json={'url': 'http://a/stream', 'frame_rate': '15'})
        assert response.status_code == 200
        assert response.json()['job']['output_path'].endswith('output.mp4')

        response = await client.post("/api/session/download", json={'url': 'http://a/stream', 'frame_rate': 15})
        assert response.status_code == 409

        await settle()
        log = (await client.get("/api/session/log", params={'since': 0})).json()
        assert log == {'lines': ['frame= 1 fps= 10'], 'next_cursor': 1}

        status = (await client.get("/api/session/status")).json()
        assert status['state'] == 'downloading'

        response = await client.post("/api/session/cancel")
        assert response.json() == {'cancelled': True, 'state': 'idle'}
        response = await client.post("/api/session/cancel")
        assert response.json()['cancelled'] is False

        status = (await client.get("/api/session/status")).json()
        assert status['last_outcome'] == 'cancelled'
        assert status['last_result']['status'] == 'cancelled'

    await session.shutdown()
