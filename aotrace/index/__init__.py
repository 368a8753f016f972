from . index import MessageIndex, SearchResult, DEFAULT_PAGE_SIZE
from . graphql_index import GraphQLMessageIndex
from . memory_index import MemoryMessageIndex
from . parsing import parse_ao_message, parse_token_event
