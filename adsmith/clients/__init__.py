"""HTTP clients for external collaborator services.

Each client follows the same pattern:
- Takes its credential(s) in __init__ and raises ServiceNotConfiguredError
  when one is missing
- Opens a short-lived httpx.AsyncClient per call with an explicit timeout
- Raises CollaboratorError on transport, status, or shape errors
"""

from adsmith.clients.elevenlabs import ElevenLabsClient, SpeechResult
from adsmith.clients.firecrawl import FirecrawlClient, normalize_search_response
from adsmith.clients.mux import MuxAsset, MuxClient
from adsmith.clients.resend import ResendClient
from adsmith.clients.runway import RunwayClient

__all__ = [
    "ElevenLabsClient",
    "FirecrawlClient",
    "MuxAsset",
    "MuxClient",
    "ResendClient",
    "RunwayClient",
    "SpeechResult",
    "normalize_search_response",
]
