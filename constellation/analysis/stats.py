from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import networkx as nx
import pandas as pd

from ..core.model import SceneSnapshot


@dataclass(frozen=True)
class SceneStatistics:
    totalStars: int
    totalConnections: int
    avgConnections: float
    mostConnected: Optional[str]
    totalTags: int
    mostUsedTag: Optional[str]
    oldestStar: Optional[str]
    newestStar: Optional[str]

    def asRows(self) -> list:
        """依顯示順序回傳 (標題, 值) 列"""
        return [
            ("Total stars", self.totalStars),
            ("Total connections", self.totalConnections),
            ("Avg connections / star", f"{self.avgConnections:.2f}"),
            ("Most connected", self.mostConnected or "-"),
            ("Unique tags", self.totalTags),
            ("Most used tag", self.mostUsedTag or "-"),
            ("Oldest star", self.oldestStar or "-"),
            ("Newest star", self.newestStar or "-"),
        ]


def buildGraph(snapshot: SceneSnapshot) -> nx.Graph:
    """依快照建立無向圖，節點屬性包含標題"""
    G = nx.Graph()
    for star in snapshot.stars:
        G.add_node(star.id, title=star.title)
    for conn in snapshot.connections:
        if conn.fromId in G and conn.toId in G:
            G.add_edge(conn.fromId, conn.toId)
    return G


def starTable(snapshot: SceneSnapshot) -> pd.DataFrame:
    """將星星整理為資料表。

    Args:
        snapshot: 場景快照。

    Returns:
        pd.DataFrame: 以 id 為索引，含 title、x、y、shape、tags、degree、createdAt 欄位。
    """
    G = buildGraph(snapshot)
    rows = [
        {
            "id": star.id,
            "title": star.title,
            "x": star.x,
            "y": star.y,
            "shape": star.shape.value,
            "tags": ", ".join(star.tags),
            "degree": G.degree(star.id),
            "createdAt": star.createdAt,
        }
        for star in snapshot.stars
    ]
    columns = ["id", "title", "x", "y", "shape", "tags", "degree", "createdAt"]
    return pd.DataFrame(rows, columns=columns).set_index("id")


def computeStatistics(snapshot: SceneSnapshot) -> SceneStatistics:
    """計算場景統計資訊"""
    totalStars = len(snapshot.stars)
    totalConnections = len(snapshot.connections)
    avg = round(totalConnections / totalStars, 2) if totalStars else 0.0

    G = buildGraph(snapshot)
    mostConnected = None
    bestDegree = 0
    # 同分時取較早加入的星星
    for star in snapshot.stars:
        degree = G.degree(star.id)
        if degree > bestDegree:
            bestDegree = degree
            mostConnected = star.title

    tags = pd.Series([tag for star in snapshot.stars for tag in star.tags], dtype=object)
    mostUsedTag = None
    if not tags.empty:
        counts = tags.value_counts(sort=False)
        mostUsedTag = str(counts.idxmax())

    oldest = newest = None
    if totalStars:
        frame = pd.DataFrame({
            "title": [star.title for star in snapshot.stars],
            "createdAt": pd.to_datetime([star.createdAt for star in snapshot.stars],
                                        errors="coerce", utc=True, format="ISO8601"),
        })
        frame = frame.dropna(subset=["createdAt"]).sort_values("createdAt", kind="stable")
        if not frame.empty:
            oldest = frame["title"].iloc[0]
            newest = frame["title"].iloc[-1]

    return SceneStatistics(
        totalStars=totalStars,
        totalConnections=totalConnections,
        avgConnections=avg,
        mostConnected=mostConnected,
        totalTags=int(tags.nunique()),
        mostUsedTag=mostUsedTag,
        oldestStar=oldest,
        newestStar=newest,
    )
