"""Recorded patch streams used by the demo command and tests."""

from __future__ import annotations

from typing import Dict

__all__ = ["STREAMS", "load_stream"]

TODOLIST_STREAM = """\
data:{"op":"set","path":"/root","value":"root"}

data:{"op":"add","path":"/elements/root","value":{"type":"Stack","props":{"gap":"md"},"children":["title","table","actions"]}}

data:{"op":"add","path":"/elements/title","value":{"type":"Title","props":{"text":"My Todo List"}}}

data:{"op":"add","path":"/elements/table","value":{"type":"Table","props":{"dataPath":"/todos"}}}

data:{"op":"add","path":"/elements/actions","value":{"type":"Stack","props":{"gap":"sm"},"children":["addBtn","clearBtn"]}}

data:{"op":"add","path":"/elements/addBtn","value":{"type":"Button","props":{"label":"Add Todo","variant":"primary","action":"addTodo"}}}

data:{"op":"add","path":"/elements/clearBtn","value":{"type":"Confirm","props":{"label":"Clear All","action":"clearAll","confirm":{"title":"Clear All Todos","message":"Are you sure you want to delete all todos?"}}}}"""

DASHBOARD_STREAM = """\
{"op":"set","path":"/root","value":"root-card"}
{"op":"add","path":"/elements/root-card","value":{"key":"root-card","type":"Card","props":{"title":"Revenue Dashboard","description":"Mock data rendered locally","padding":"md"},"children":["filters-card","metrics-grid","chart-card","table-card"]}}

{"op":"add","path":"/elements/filters-card","value":{"key":"filters-card","type":"Card","props":{"title":"Filters","description":null,"padding":"md"},"children":["filters-stack"]}}
{"op":"add","path":"/elements/filters-stack","value":{"key":"filters-stack","type":"Stack","props":{"direction":"horizontal","gap":"md","align":"center"},"children":["region-select","apply-btn"]}}
{"op":"add","path":"/elements/region-select","value":{"key":"region-select","type":"Select","props":{"label":"Region","bindPath":"/form/region","options":[{"value":"all","label":"All"},{"value":"us","label":"US"},{"value":"eu","label":"EU"}]}}}
{"op":"add","path":"/elements/apply-btn","value":{"key":"apply-btn","type":"Button","props":{"label":"Apply","variant":"secondary","action":{"name":"apply_filter"}}}}

{"op":"add","path":"/elements/metrics-grid","value":{"key":"metrics-grid","type":"Grid","props":{"columns":2,"gap":"md"},"children":["metric-revenue","metric-orders"]}}
{"op":"add","path":"/elements/metric-revenue","value":{"key":"metric-revenue","type":"Metric","props":{"label":"Total Revenue","valuePath":"/analytics/revenue","format":"currency","trend":"up","trendValue":"+15%"}}}
{"op":"add","path":"/elements/metric-orders","value":{"key":"metric-orders","type":"Metric","props":{"label":"Orders","valuePath":"/analytics/orders","format":"number","trend":"down","trendValue":"-13"}}}

{"op":"add","path":"/elements/chart-card","value":{"key":"chart-card","type":"Card","props":{"title":"Sales by Region","padding":"md"},"children":["sales-chart"]}}
{"op":"add","path":"/elements/sales-chart","value":{"key":"sales-chart","type":"Chart","props":{"type":"bar","dataPath":"/analytics/salesByRegion","height":140}}}

{"op":"add","path":"/elements/table-card","value":{"key":"table-card","type":"Card","props":{"title":"Recent Transactions","padding":"md"},"children":["transactions-table"]}}
{"op":"add","path":"/elements/transactions-table","value":{"key":"transactions-table","type":"Table","props":{"dataPath":"/analytics/recentTransactions","columns":[{"key":"id","label":"ID","format":"text"},{"key":"amount","label":"Amount","format":"currency"},{"key":"status","label":"Status","format":"badge"}]}}}
"""

TABLE_STREAM = """\
{"op":"set","path":"/root","value":"root-table-card"}
{"op":"add","path":"/elements/root-table-card","value":{"key":"root-table-card","type":"Card","props":{"title":"Transactions (Mock)","description":"Table rendering sanity check","padding":"md"},"children":["transactions-table"]}}
{"op":"add","path":"/elements/transactions-table","value":{"key":"transactions-table","type":"Table","props":{"dataPath":"/analytics/recentTransactions","columns":[{"key":"id","label":"ID","format":"text"},{"key":"date","label":"Date","format":"date"}]}}}
"""

STREAMS: Dict[str, str] = {
    "todolist": TODOLIST_STREAM,
    "dashboard": DASHBOARD_STREAM,
    "table": TABLE_STREAM,
}


def load_stream(name: str) -> str:
    """Return the bundled stream called ``name``."""
    try:
        return STREAMS[name]
    except KeyError as error:
        valid = ", ".join(sorted(STREAMS))
        raise KeyError(f"Unknown stream '{name}'. Expected one of: {valid}") from error
