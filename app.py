from dotenv import load_dotenv

from expenseflow import create_app

load_dotenv()

app = create_app()


if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))
