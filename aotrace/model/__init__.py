from . object_model import *
from . errors import *
from . identifiers import is_arweave_id, enforce_arweave_id, get_arweave_id, get_random_arweave_id
from . results import OutputMessage, MessageResult
