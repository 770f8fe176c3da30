from dataclasses import dataclass

from az_table_store import TableRecord

CONNECTION_STRING = "DefaultEndpointsProtocol=http;AccountName=devstoreaccount1;AccountKey=a2V5;TableEndpoint=http://127.0.0.1:10002/devstoreaccount1;"
TABLE_NAME = "testTable"
PARTITION = "testKey"


@dataclass
class TestEntity(TableRecord):
    __test__ = False

    value: str = ""


def batch_entities(partition_key: str = PARTITION) -> list[TestEntity]:
    return [
        TestEntity(partition_key, "batch1", value="Batch Test Data 1."),
        TestEntity(partition_key, "batch2", value="Batch Test Data 2."),
        TestEntity(partition_key, "batch3", value="Batch Test Data 3."),
    ]
