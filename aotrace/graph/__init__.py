from . resolver import GraphResolver, TraversalLimits
from . tokens import *
from . aggregation import *
