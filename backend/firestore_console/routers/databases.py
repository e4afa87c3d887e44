from fastapi import APIRouter, Depends

from ..config import DEFAULT_DATABASE_ID, Settings, get_settings
from ..schemas import DatabaseInfo, DatabaseList

router = APIRouter(tags=["databases"])


@router.get("/databases", response_model=DatabaseList)
def list_databases(settings: Settings = Depends(get_settings)):
    databases = []
    for db_id in settings.databases:
        label = "Default Database" if db_id == DEFAULT_DATABASE_ID else db_id
        databases.append(DatabaseInfo(id=db_id, name=label, display_name=label))
    return {"databases": databases}
