from dotenv import load_dotenv
import uvicorn

load_dotenv()

if __name__ == '__main__':
    from config import validate_config
    validate_config()

    uvicorn.run("app:app",
                app_dir="backend",
                host="127.0.0.1",
                port=8000,
                reload=True)
