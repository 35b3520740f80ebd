import logging
import re

from wastereport.crud import report as report_crud
from wastereport.crud import reward as reward_crud
from wastereport.crud import collection_task as collection_task_crud
from wastereport.models import ImpactData

logger = logging.getLogger(__name__)

# kg of CO2 saved per kg of collected waste
CO2_PER_KG = 0.5
IMPACT_SAMPLE_SIZE = 100

AMOUNT_PATTERN = re.compile(r"(\d+(\.\d+)?)")


def parse_amount(amount) -> float:
    """Read the first number out of a free-text amount such as '2.5kg'"""
    match = AMOUNT_PATTERN.search(str(amount or ""))
    return float(match.group(0)) if match else 0.0


async def get_impact_data() -> ImpactData:
    """
    Aggregate community impact figures

    Any persistence failure yields an all-zero result.
    """
    try:
        reports = await report_crud.get_recent_reports(IMPACT_SAMPLE_SIZE)
        rewards = await reward_crud.get_all_rewards()
        tasks = await collection_task_crud.get_waste_collection_tasks(IMPACT_SAMPLE_SIZE)
    except Exception as e:
        logger.error(f"Error fetching impact data: {str(e)}")
        return ImpactData()

    waste_collected = sum(parse_amount(task.get("amount")) for task in tasks)
    tokens_earned = sum(reward.get("points") or 0 for reward in rewards)
    co2_offset = waste_collected * CO2_PER_KG

    return ImpactData(
        waste_collected=round(waste_collected, 1),
        reports_submitted=len(reports),
        tokens_earned=tokens_earned,
        co2_offset=round(co2_offset, 1)
    )
