from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.orm import Session

from config import configure_logging
from database import get_db, init_db
from errors import ErrorKind, is_error
from licensing import Licensing
from models import (
    LicenseActivationRequest,
    LicenseActionResponse,
    LicenseStatusResponse,
    UpdateInfoResponse,
    PluginInfo,
    PluginInformation,
    UpdateOffer,
    Addon,
    PurgeRequest,
    PurgeResponse,
    HealthCheckResponse
)

__version__ = "1.0.0"

ERROR_STATUS = {
    ErrorKind.EMPTY_INPUT: 400,
    ErrorKind.NOT_APPLICABLE: 403,
    ErrorKind.NOT_ACTIVE: 403,
    ErrorKind.INVALID_ACTIVATION: 409,
    ErrorKind.TOO_MANY_REQUESTS: 429,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.REMOTE: 502,
    ErrorKind.UNKNOWN: 502,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    yield

app = FastAPI(
    title="License Client Service",
    description="Activation and update checks against the licensing service",
    version=__version__,
    lifespan=lifespan,
)

def get_licensing(db: Session = Depends(get_db)) -> Licensing:
    return Licensing.from_settings(db)

def raise_for_error(result):
    if is_error(result):
        raise HTTPException(
            status_code=ERROR_STATUS[result.kind],
            detail=result.model_dump(mode="json"),
        )
    return result

# API Endpoints
@app.post("/api/license/activate", response_model=LicenseActionResponse)
async def activate_license(
    request: LicenseActivationRequest,
    licensing: Licensing = Depends(get_licensing)
):
    """
    Activate license with the licensing service.

    The site's activation record keeps the install id so later
    activations update the same install.
    """
    raise_for_error(await licensing.activate(request.licenseKey))
    return {"success": True, "message": "License activated successfully"}

@app.post("/api/license/deactivate", response_model=LicenseActionResponse)
async def deactivate_license(licensing: Licensing = Depends(get_licensing)):
    """
    Deactivate the license on this site.

    The license key is forgotten; it must be supplied again to re-activate.
    """
    raise_for_error(await licensing.deactivate())
    return {"success": True, "message": "License deactivated successfully"}

@app.post("/api/license/sync", response_model=LicenseActionResponse)
async def sync_license(licensing: Licensing = Depends(get_licensing)):
    """
    Refresh install data (e.g. plan name) with the stored license key.
    """
    raise_for_error(await licensing.license.sync_install())
    return {"success": True, "message": "License synced successfully"}

@app.get("/api/license/status", response_model=LicenseStatusResponse)
async def get_license_status(licensing: Licensing = Depends(get_licensing)):
    record = licensing.license.get_activation_data()

    if record is None:
        return {"active": False, "status": "no_license"}

    return {
        "active": record.is_active(),
        "status": record.status.value,
        "installId": record.install_id or None,
        "planName": licensing.license.get_plan_name() or None,
        "activatedAt": record.date.isoformat() if record.date else None,
    }

@app.get("/api/update", response_model=UpdateInfoResponse)
async def get_update(force: bool = False, licensing: Licensing = Depends(get_licensing)):
    """
    Latest release, if it is newer and runs on this host.

    Results are cached for a day; remote checks are throttled.
    """
    update_info = raise_for_error(await licensing.get_update_info(force))

    if update_info is None:
        return {"available": False}

    return {
        "available": True,
        "version": update_info.version,
        "url": update_info.url,
        "requires_platform_version": update_info.requires_platform_version,
        "requires_language_version": update_info.requires_language_version,
        "tested_up_to": update_info.tested_up_to,
        "updated_at": update_info.updated_at,
    }

@app.get("/api/update/offer", response_model=UpdateOffer)
async def get_update_offer(licensing: Licensing = Depends(get_licensing)):
    offer = await licensing.update.get_update_offer()
    if offer is None:
        raise HTTPException(status_code=404, detail="No update available")
    return offer

@app.get("/api/update/information", response_model=PluginInformation)
async def get_plugin_information(licensing: Licensing = Depends(get_licensing)):
    information = await licensing.update.get_plugin_information()
    if information is None:
        raise HTTPException(status_code=404, detail="No release information available")
    return information

@app.post("/api/update/purge", response_model=PurgeResponse)
async def purge_update_cache(request: PurgeRequest, licensing: Licensing = Depends(get_licensing)):
    """
    Notify that packages were upgraded so stale update data is dropped.
    """
    purged = licensing.update.purge_update_cache(request.action, request.type, request.packages)
    return {"purged": purged}

@app.get("/api/plugin/info", response_model=PluginInfo)
async def get_marketing_info(licensing: Licensing = Depends(get_licensing)):
    return raise_for_error(await licensing.get_marketing_info())

@app.get("/api/addons", response_model=List[Addon])
async def get_addons(force: bool = False, licensing: Licensing = Depends(get_licensing)):
    return await licensing.get_addons(force)

@app.get("/health", response_model=HealthCheckResponse)
async def health_check(licensing: Licensing = Depends(get_licensing)):
    """
    Health check endpoint for container orchestration.
    """
    return {
        "status": "healthy",
        "service": "license-client",
        "version": __version__,
        "pluginId": licensing.plugin.id,
        "siteUid": licensing.host.site_uid()
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
