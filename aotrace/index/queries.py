from __future__ import annotations

# GraphQL documents for the transaction index (an Arweave GraphQL gateway).
# All filters are passed as variables. The gateway AND-combines filters and
# OR-combines the values of a single tag filter.
#
# WARN the gateway fails if both 'count' and a cursor are requested, so 'count'
# is only selected on the first page.

AO_NETWORK_IDENTIFIER = {"name": "Data-Protocol", "values": ["ao"]}
AO_MIN_INGESTED_AT = 1696107600

SORT_ASCENDING = "HEIGHT_ASC"
SORT_DESCENDING = "INGESTED_AT_DESC"

MESSAGE_FIELDS = """
fragment MessageFields on TransactionConnection {
  edges {
    cursor
    node {
      id
      ingested_at
      recipient
      block {
        timestamp
        height
      }
      tags {
        name
        value
      }
      data {
        size
      }
      owner {
        address
      }
    }
  }
}
"""

def sort_order(ascending:bool) -> str:
    return SORT_ASCENDING if ascending else SORT_DESCENDING

def tag_filter(name:str, *values:str) -> dict:
    return {"name": name, "values": list(values)}

def build_transactions_query(
    owners:bool = False,
    recipients:bool = False,
    ids:bool = False,
    block:bool = False,
    include_count:bool = False,
    paginated:bool = True,
    ) -> str:
    """Builds a 'transactions' query. Each flag adds the matching filter variable."""
    declarations = ["$tags: [TagFilter!]"]
    arguments = ["tags: $tags", f"ingested_at: {{ min: {AO_MIN_INGESTED_AT} }}"]
    if paginated:
        declarations += ["$limit: Int!", "$sortOrder: SortOrder!", "$cursor: String"]
        arguments += ["sort: $sortOrder", "first: $limit", "after: $cursor"]
    if owners:
        declarations.append("$owners: [String!]")
        arguments.append("owners: $owners")
    if recipients:
        declarations.append("$recipients: [String!]")
        arguments.append("recipients: $recipients")
    if ids:
        declarations.append("$ids: [ID!]")
        arguments.append("ids: $ids")
    if block:
        declarations.append("$blockHeight: Int")
        arguments.append("block: { min: $blockHeight, max: $blockHeight }")
    count = "count" if include_count else ""
    return (
        f"query ({', '.join(declarations)}) {{\n"
        f"  transactions({', '.join(arguments)}) {{\n"
        f"    {count}\n"
        f"    ...MessageFields\n"
        f"  }}\n"
        f"}}\n"
        f"{MESSAGE_FIELDS}"
    )
