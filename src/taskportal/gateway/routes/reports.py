"""报表路由

GET /api/reports/summary: 汇总、状态/优先级分布、7 日完成趋势
GET /api/reports/leaderboard: 按积分排序的排行榜
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from taskportal.core.reports import LeaderboardEntry, ReportRange, ReportSummary

from ..deps import get_store_group
from ..services.report_service import ReportService

router = APIRouter()


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


def get_report_service(store_group=Depends(get_store_group)) -> ReportService:
    return ReportService(store_group)


@router.get("/api/reports/summary", response_model=ReportSummary)
async def report_summary(
    range: ReportRange = Query(default=ReportRange.MONTH, description="时间范围"),
    assignee_id: str | None = Query(default=None, description="只统计指定执行人"),
    service: ReportService = Depends(get_report_service),
):
    return await service.summary(range, assignee_id)


@router.get("/api/reports/leaderboard", response_model=LeaderboardResponse)
async def report_leaderboard(
    limit: int | None = Query(default=None, ge=1),
    service: ReportService = Depends(get_report_service),
):
    return LeaderboardResponse(entries=await service.leaderboard(limit))
