# src/ccmon/core/config.py

import logging
import os

from dotenv import load_dotenv

from ..utils.date_utils import parse_duration

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)


def _get_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() in ("true", "1", "t", "y", "yes")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Cluster variables ---
    NAMESPACE = os.getenv("CCMON_NAMESPACE", "default")
    KUBECONFIG = os.getenv("KUBECONFIG", os.path.join(os.path.expanduser("~"), ".kube", "config"))
    WORKLOAD_IMAGE = os.getenv("WORKLOAD_IMAGE", "public.ecr.aws/eks-distro/kubernetes/pause:3.2")
    SCALE_MAX_ATTEMPTS = int(os.getenv("SCALE_MAX_ATTEMPTS", "100"))

    # --- Sampling variables ---
    PENDING_SAMPLE_INTERVAL = os.getenv("PENDING_SAMPLE_INTERVAL", "250ms")
    COST_SAMPLE_INTERVAL = os.getenv("COST_SAMPLE_INTERVAL", "1s")
    PROGRESS_LOG_INTERVAL = os.getenv("PROGRESS_LOG_INTERVAL", "1m")

    # --- Output variables ---
    OUTPUT_DIR = os.getenv("OUTPUT_DIR", ".")

    # --- Pricing variables ---
    PRICING_SOURCE = os.getenv("PRICING_SOURCE", "static").lower()
    PRICING_URL = os.getenv("PRICING_URL", "https://instances.vantage.sh/instances.json")
    PRICING_REGION = os.getenv("PRICING_REGION", "us-west-2")
    PRICING_VERIFY_CERTS = _get_bool("PRICING_VERIFY_CERTS", "True")

    # --- HTTP client variables ---
    DEFAULT_TIMEOUT_CONNECT = float(os.getenv("DEFAULT_TIMEOUT_CONNECT", "5"))
    DEFAULT_TIMEOUT_READ = float(os.getenv("DEFAULT_TIMEOUT_READ", "30"))
    USER_AGENT = os.getenv("USER_AGENT", "ccmon")
    HTTP_RETRIES = int(os.getenv("HTTP_RETRIES", "2"))

    @property
    def pending_sample_seconds(self) -> float:
        return parse_duration(self.PENDING_SAMPLE_INTERVAL).total_seconds()

    @property
    def cost_sample_seconds(self) -> float:
        return parse_duration(self.COST_SAMPLE_INTERVAL).total_seconds()

    @property
    def progress_log_seconds(self) -> float:
        return parse_duration(self.PROGRESS_LOG_INTERVAL).total_seconds()

    def validate_instance(self):
        for key in ("PENDING_SAMPLE_INTERVAL", "COST_SAMPLE_INTERVAL", "PROGRESS_LOG_INTERVAL"):
            value = getattr(self, key)
            try:
                seconds = parse_duration(value).total_seconds()
            except ValueError as e:
                raise ValueError(f"{key} format is invalid: {e}") from e
            if seconds <= 0:
                raise ValueError(f"{key} must be greater than zero.")
        if self.SCALE_MAX_ATTEMPTS < 1:
            raise ValueError("SCALE_MAX_ATTEMPTS must be at least 1.")
        if self.PRICING_SOURCE not in ("static", "http"):
            raise ValueError("PRICING_SOURCE must be 'static' or 'http'.")
        if self.PRICING_SOURCE == "http" and not self.PRICING_URL:
            logging.warning("PRICING_URL is not set; pricing refresh will fail.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
