"""Usage guide served to agents as an MCP prompt and resource."""

from __future__ import annotations

from .catalog import DEFAULT_PAGE_SIZE

QUERY_GUIDE = f"""\
# Reading Tellescope records

Every tool is named `<resource>_get_one` or `<resource>_get_page`.

## <resource>_get_one
Arguments: `{{"id": "<record id>"}}` (required, string).
Returns the full record as JSON text.

## <resource>_get_page
All arguments are optional:
- `filter`: object of field criteria, e.g. `{{"journeyId": "abc123"}}`.
  MongoDB-style operators are evaluated by the API, not by the gateway.
- `limit`: positive integer, page size (API default {DEFAULT_PAGE_SIZE}).
- `cursor`: the `id` of the last record of the previous page.
Any other field is forwarded to the API unchanged.

### Paging
1. Call `<resource>_get_page` with a `limit`.
2. Take the `id` of the last record returned.
3. Call again with the same `filter` and `limit` plus `cursor` set to that id.
4. Stop when a page comes back shorter than `limit` or empty.

## Errors
A failed call returns `isError: true` and text starting with `Error:`.
Invalid tool names, unknown resource types and invalid arguments are
reported without contacting the API. Nothing is retried automatically.
"""
