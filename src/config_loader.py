"""
Configuration loader for the Stream Camera Local Server
Loads and validates configuration from YAML files
"""

import yaml
import logging
from typing import Dict, Any
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        # Validate required sections
        _validate_config(config)

        # Apply defaults
        config = _apply_defaults(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    required_sections = ['discovery', 'session']

    for section in required_sections:
        if section not in config or config[section] is None:
            raise ValueError(f"Missing required configuration section: {section}")

    # Validate discovery section
    discovery = config['discovery']
    host_range = discovery.get('host_range')
    if host_range is not None:
        if not isinstance(host_range, (list, tuple)) or len(host_range) != 2:
            raise ValueError("discovery.host_range must be a [low, high] pair")
        low, high = host_range
        if not (0 <= int(low) <= int(high) <= 255):
            raise ValueError(f"discovery.host_range out of bounds: {host_range}")

    for key in ('probe_timeout_ms', 'port', 'parallel_probes'):
        if key in discovery and int(discovery[key]) <= 0:
            raise ValueError(f"discovery.{key} must be positive")

    # Validate session section
    session = config['session']
    if 'downloads_root' not in session or not session['downloads_root']:
        raise ValueError("session.downloads_root is required")

    for key in ('probe_seconds', 'probe_timeout_seconds', 'stop_timeout_seconds', 'max_log_lines'):
        if key in session and float(session[key]) <= 0:
            raise ValueError(f"session.{key} must be positive")

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    # Discovery defaults
    discovery_defaults = {
        'local_ip': None,           # Detected from the default route when unset
        'host_range': [100, 150],
        'probe_timeout_ms': 150,
        'port': 80,
        'parallel_probes': 1,       # 1 = strictly sequential scan
        'accept_any_status': False  # Only 2xx responses count as a hit
    }
    for key, default_value in discovery_defaults.items():
        if key not in config['discovery']:
            config['discovery'][key] = default_value

    # Session defaults
    session_defaults = {
        'ffmpeg_path': 'ffmpeg',
        'stream_path': 'stream',
        'download_folder': 'DownloadedVideos',
        'output_base_name': 'output',
        'output_extension': 'mp4',
        'probe_seconds': 10,
        'probe_timeout_seconds': 30,
        'stop_timeout_seconds': 5,
        'max_log_lines': 5000
    }
    for key, default_value in session_defaults.items():
        if key not in config['session']:
            config['session'][key] = default_value

    # API defaults
    if 'api' not in config:
        config['api'] = {}
    api_defaults = {
        'host': '127.0.0.1',
        'port': 8000,
        'cors_origins': ['*']
    }
    for key, default_value in api_defaults.items():
        if key not in config['api']:
            config['api'][key] = default_value

    # Logging defaults
    if 'logging' not in config:
        config['logging'] = {}
    logging_defaults = {
        'level': 'INFO',
        'file': 'logs/stream_server.log',
        'console_output': True,
        'timezone': 'UTC'
    }
    for key, default_value in logging_defaults.items():
        if key not in config['logging']:
            config['logging'][key] = default_value

    return config


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, tz_name)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=[]
    )

    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logging.getLogger().addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, tz={tz_name}, console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "discovery": {
            "local_ip": None,
            "host_range": [100, 150],
            "probe_timeout_ms": 150,
            "port": 80,
            "parallel_probes": 1,
            "accept_any_status": False
        },
        "session": {
            "downloads_root": "~/Downloads",
            "download_folder": "DownloadedVideos",
            "output_base_name": "output",
            "output_extension": "mp4",
            "ffmpeg_path": "ffmpeg",
            "stream_path": "stream",
            "probe_seconds": 10,
            "probe_timeout_seconds": 30,
            "stop_timeout_seconds": 5,
            "max_log_lines": 5000
        },
        "api": {
            "host": "127.0.0.1",
            "port": 8000,
            "cors_origins": ["*"]
        },
        "logging": {
            "level": "INFO",
            "file": "logs/stream_server.log",
            "console_output": True,
            "timezone": "UTC"
        }
    }
