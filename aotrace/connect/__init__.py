from . endpoints import *
from . signer import Signer, SignerProvider, SignedDataItem
from . compute import ComputeTransport, HttpComputeTransport, MessageRequest, SpawnRequest
from . memory_compute import MemoryComputeTransport
from . resilient_client import ResilientClient, TransportFactory
from . registry import ClientRegistry
