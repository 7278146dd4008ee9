from sky_flap.game import main


if __name__ == "__main__":
    main()
