from dotenv import load_dotenv
import os

load_dotenv()

MAX_UPLOAD_CHUNK_SIZE = 5 * 1024 * 1024


class Config:
    TWITTER_API_KEY = os.getenv('TWITTER_API_KEY')
    TWITTER_API_SECRET = os.getenv('TWITTER_API_SECRET')
    TWITTER_ACCESS_TOKEN = os.getenv('TWITTER_ACCESS_TOKEN')
    TWITTER_ACCESS_SECRET = os.getenv('TWITTER_ACCESS_SECRET')

    REQUEST_TOKEN_URL = os.getenv('TWITTER_REQUEST_TOKEN_URL', 'https://api.twitter.com/oauth/request_token')
    AUTHORIZE_URL = os.getenv('TWITTER_AUTHORIZE_URL', 'https://api.twitter.com/oauth/authorize')
    ACCESS_TOKEN_URL = os.getenv('TWITTER_ACCESS_TOKEN_URL', 'https://api.twitter.com/oauth/access_token')
    MEDIA_UPLOAD_URL = os.getenv('TWITTER_MEDIA_UPLOAD_URL', 'https://upload.twitter.com/1.1/media/upload.json')
    STATUS_UPDATE_URL = os.getenv('TWITTER_STATUS_UPDATE_URL', 'https://api.twitter.com/1.1/statuses/update.json')

    HTTP_TIMEOUT = float(os.getenv('TWITTER_HTTP_TIMEOUT', '30'))
    UPLOAD_CHUNK_SIZE = int(os.getenv('TWITTER_UPLOAD_CHUNK_SIZE', str(4 * 1024 * 1024)))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
