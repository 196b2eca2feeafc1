# apps/backend/app/routes/identity.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.identity import PixelSession, PixelUser
from app.schemas.identity import SessionIn, SessionOut, UserIn, UserOut
from app.services.identity import upsert_session_record, upsert_user_record

router = APIRouter()

@router.get("/users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db)):
  return [u.to_dict() for u in db.scalars(select(PixelUser))]

@router.get("/users/{client_id}", response_model=Optional[UserOut])
def get_user(client_id: str, db: Session = Depends(get_db)):
  user = db.get(PixelUser, client_id)
  return user.to_dict() if user else None

@router.post("/users", response_model=UserOut)
def post_user(body: UserIn, db: Session = Depends(get_db)):
  return upsert_user_record(db, body).to_dict()

@router.get("/sessions", response_model=List[SessionOut])
def list_sessions(db: Session = Depends(get_db)):
  return [s.to_dict() for s in db.scalars(select(PixelSession))]

@router.post("/sessions", response_model=SessionOut)
def post_session(body: SessionIn, db: Session = Depends(get_db)):
  return upsert_session_record(db, body).to_dict()
