"""Domain entities"""

from result_store.domain.entities.result_record import ResultRecord

__all__ = ["ResultRecord"]
