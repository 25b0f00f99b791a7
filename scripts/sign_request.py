from app.core.config import get_settings
from app.services.signed_request import sign_request

def main():
    settings = get_settings()
    user_id = input("Facebook user id: ").strip()
    if not user_id:
        print("User id cannot be empty")
        return

    signed = sign_request({"algorithm": "HMAC-SHA256", "user_id": user_id}, settings.APP_SECRET)
    print(signed)
    print()
    print(f"curl -X POST -d 'signed_request={signed}' http://localhost:{settings.PORT}/fb-deletion-callback")

if __name__ == "__main__":
    main()
