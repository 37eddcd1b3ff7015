import uvicorn

from school_api.core.config import settings

if __name__ == "__main__":
    uvicorn.run("school_api.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.ENV == "dev")
