"""
GraphQL documents sent to the upstream account directory.

The gateway treats these as opaque request shapes; only the response
fields consumed by ``domain.mapping`` matter.
"""

# Page size for the down/warning entity lists. The aggregate counts are not
# paginated, so lists longer than this undercount relative to the summary.
LIST_PAGE_SIZE = 300


def _status_filter(status: str) -> str:
    return (
        '{ relation: "addresses.inventory_items"\n'
        f'        search: {{ string_fields: [{{ attribute: "icmp_device_status", search_value: "{status}", match: true }}] }}\n'
        "      }"
    )


_ACCOUNT_FIELDS = """
    entities {
      id
      name
      addresses { entities { line1 } }
      ip_assignment_histories { entities { subnet } }
    }
"""


EQUIPMENT_SUMMARY_QUERY = f"""
query equipment_summary($companyId: Int64Bit, $accountStatusID: Int64Bit) {{
  total: accounts(company_id: $companyId, account_status_id: $accountStatusID) {{
    page_info {{ total_count }}
  }}
  good: accounts(
    company_id: $companyId
    account_status_id: $accountStatusID
    reverse_relation_filters: [
      {_status_filter('Good')}
    ]
  ) {{ page_info {{ total_count }} }}
  down: accounts(
    company_id: $companyId
    account_status_id: $accountStatusID
    reverse_relation_filters: [
      {_status_filter('Down')}
    ]
  ) {{ page_info {{ total_count }} }}
  warning: accounts(
    company_id: $companyId
    account_status_id: $accountStatusID
    reverse_relation_filters: [
      {_status_filter('Warning')}
    ]
  ) {{ page_info {{ total_count }} }}
  uninventoried_only: accounts(
    company_id: $companyId
    account_status_id: $accountStatusID
    reverse_relation_filters: [
      {{ relation: "uninventoried_mac_addresses", search: {{ exists: ["mac_address"] }} }},
      {{ relation: "addresses.inventory_items", search: {{ exists: ["icmp_device_status"] }}, is_empty: true }}
    ]
  ) {{ page_info {{ total_count }} }}
}}
"""


def _status_list_query(operation: str, status: str) -> str:
    return f"""
query {operation}($companyId: Int64Bit, $accountStatusID: Int64Bit) {{
  accounts(
    company_id: $companyId
    account_status_id: $accountStatusID
    paginator: {{ page: 1, records_per_page: {LIST_PAGE_SIZE} }}
    reverse_relation_filters: [
      {_status_filter(status)}
    ]
  ) {{{_ACCOUNT_FIELDS}  }}
}}
"""


DOWN_ACCOUNTS_QUERY = _status_list_query("down_accounts", "Down")

WARNING_ACCOUNTS_QUERY = _status_list_query("warning_accounts", "Warning")

ACCOUNT_BY_ID_QUERY = f"""
query account_by_id($id: Int64Bit) {{
  accounts(id: $id) {{{_ACCOUNT_FIELDS}  }}
}}
"""
