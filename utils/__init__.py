from utils.get_endpoint import get_endpoint, get_timeout
from utils.response_utils import robust_parse_text

__all__ = ["get_endpoint", "get_timeout", "robust_parse_text"]
