__version__ = "0.1.0"

from . model import *
from . connect import ResilientClient, ClientRegistry, EndpointConfig, PRIMARY_CONFIG, FALLBACK_CONFIG
from . index import MessageIndex, GraphQLMessageIndex, MemoryMessageIndex
from . graph import GraphResolver, TraversalLimits, get_swap, get_all_transfers
